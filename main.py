# ===== Part 1: Imports & Logging ============================================
import logging

from fastapi import FastAPI

from utils.app_settings import data_dir, is_dev_mode

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.DEBUG if is_dev_mode() else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )


# ===== Part 2: Application factory ==========================================
def create_app() -> FastAPI:
    """Build the FastAPI app with the inspection and hazard routes mounted."""
    configure_logging()
    from modules import inspections
    from modules.safety import hazards

    app = FastAPI(title="Facility Compliance Engine")
    inspections.register_api(app)
    hazards.register_api(app)
    logger.info("Compliance API ready (data dir: %s)", data_dir())
    return app


app = create_app()
