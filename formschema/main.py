"""formschema - Robyn API normalizing bracket-notation form bodies."""

from robyn import Robyn

from formschema.api.documents import router as documents_router
from formschema.api.health import router as health_router
from formschema.core.logger import LogIcon, logger
from formschema.core.settings import settings as st
from formschema.middlewares.base import MiddlewareHandler
from formschema.middlewares.forms import FormOpenAPIMiddleware

app = Robyn(__file__)

# Routers
app.include_router(health_router)
app.include_router(documents_router)

# Middlewares
middlewares = MiddlewareHandler(app)
middlewares.register(FormOpenAPIMiddleware)


def main() -> None:
    logger.info("STARTING %s | HOST=%s | PORT=%s", st.API_NAME, st.API_HOST, st.API_PORT, icon=LogIcon.START)
    app.start(host=st.API_HOST, port=st.API_PORT)


if __name__ == "__main__":
    main()
