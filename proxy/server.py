"""
ProxyServer class for CLI control of the FastAPI application.
"""
import logging
import os
from typing import Optional

import uvicorn

import settings
from .app import app

logger = logging.getLogger(__name__)

DEBUG_LOG_FILE = 'proxy_debug.log'


def setup_debug_logging(log_file: str = DEBUG_LOG_FILE) -> str:
    """Send DEBUG output of every logger to the console and an append-mode file"""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    log_path = os.path.abspath(log_file)
    file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    file_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)
    return log_path


class ProxyServer:
    """Gateway server wrapper for CLI control"""

    def __init__(self, debug: bool = False, bind_address: Optional[str] = None, port: Optional[int] = None):
        self.server = None
        self.config = None
        self.debug = debug
        self.bind_address = bind_address or settings.BIND_ADDRESS
        self.port = port or settings.PORT

        if debug:
            log_path = setup_debug_logging()
            logger.info(f"Debug logging enabled - appending to {log_path}")

    @property
    def url(self) -> str:
        return f"http://{self.bind_address}:{self.port}"

    def run(self):
        """Run the gateway (blocking)"""
        logger.info(f"Starting Copilot gateway on {self.url}")
        logger.info("Available endpoints: /v1/chat/completions, /v1/responses, /api/chat, /v1/models, /api/tags")
        if settings.STREAM_TRACE_ENABLED:
            logger.warning(
                "Stream tracing is ENABLED - raw SSE lines will be written inside '%s'",
                settings.STREAM_TRACE_DIR,
            )
        self.config = uvicorn.Config(
            app,
            host=self.bind_address,
            port=self.port,
            log_level="debug" if self.debug else settings.LOG_LEVEL,
            access_log=False  # Request timing is logged by our middleware
        )
        self.server = uvicorn.Server(self.config)
        self.server.run()

    def stop(self):
        if self.server:
            self.server.should_exit = True
