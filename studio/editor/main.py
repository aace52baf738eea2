"""Elements Studio - bootstrap helpers.

The embedding page owns the canvas, the window and the address bar; it calls
``bootstrap`` with them to get a running ``StudioApp``.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from studio.shared.core.collaborators import AddressBar, Canvas, DocumentService, EventTarget, HostFrame, SidePanels
from studio.shared.core.configuration import LoggingConfig, SystemConfig, ValidationLevel, get_config
from studio.editor.app import StudioApp

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent.resolve()

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_logging(config: Optional[LoggingConfig] = None) -> Path:
    """Configure root logging.

    File handler: everything at the configured level to ``<log_dir>/studio.log``.
    Console handler: only the console level (WARNING by default).

    Returns:
        Path of the log file
    """
    config = config or LoggingConfig()
    logs_dir = Path(config.log_dir)
    if not logs_dir.is_absolute():
        logs_dir = PROJECT_ROOT / logs_dir
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file_path = logs_dir / "studio.log"

    file_log_level = LOG_LEVEL_MAP.get(config.level.upper(), logging.DEBUG)
    console_log_level = LOG_LEVEL_MAP.get(config.console_level.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(file_log_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding='utf-8'
    )
    file_handler.setLevel(file_log_level)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_log_level)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S"
    ))
    root_logger.addHandler(console_handler)

    # Suppress verbose third-party library logs
    logging.getLogger("flet_controls").setLevel(logging.WARNING)
    logging.getLogger("flet_transport").setLevel(logging.WARNING)
    logging.getLogger("fletx.core.state").setLevel(logging.CRITICAL)
    if os.name == 'nt':
        logging.getLogger("asyncio").setLevel(logging.CRITICAL)

    logger.info(f"Logging configured: file={log_file_path}, console={config.console_level.upper()}+")
    return log_file_path


async def bootstrap(
    documents: DocumentService,
    canvas: Canvas,
    window: EventTarget,
    address_bar: AddressBar,
    host: Optional[HostFrame] = None,
    panels: Optional[SidePanels] = None,
    env_path: Optional[Path] = None,
) -> StudioApp:
    """Load the environment and configuration, set up logging, start the studio."""
    load_dotenv(dotenv_path=env_path or PROJECT_ROOT / ".env")
    config: SystemConfig = get_config(ValidationLevel.LENIENT)
    configure_logging(config.logging)

    logger.info("Initializing Elements Studio...")
    app = StudioApp(
        documents,
        canvas,
        window,
        address_bar,
        host=host,
        panels=panels,
        config=config,
        use_global_store=True,
    )
    await app.start()
    return app
