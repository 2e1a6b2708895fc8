import asyncio
import logging
import os
import socket

from locus_browser.config.loader import load_plot_config
from locus_browser.core.exceptions import LocusBrowserError
from locus_browser.logging_config import configure_logging
from locus_browser.plot.plot import Plot
from locus_browser.ui.dash_app import create_dash_app

configure_logging()
logger = logging.getLogger(__name__)

config_path = os.getenv("LOCUS_BROWSER_CONFIG", "config/standard_gwas.json")
layout, data_sources = load_plot_config(config_path)
plot = Plot("plot", data_sources, layout)

try:
    asyncio.run(plot.refresh())
except LocusBrowserError:
    # the status line shows plot.last_error; the app still starts
    logger.warning("Initial data load failed", extra={"config_path": config_path})

app = create_dash_app(plot)
server = app.server


def find_free_port(start_port: int) -> int:
    """Finds an available port starting from start_port."""
    port = start_port
    while port < start_port + 100:  # Try up to 100 ports
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            if s.connect_ex(('localhost', port)) != 0:
                return port
        port += 1
    return start_port


if __name__ == "__main__":
    preferred_port = int(os.getenv("PORT", "8051"))
    final_port = find_free_port(preferred_port)

    debug = os.getenv("DEBUG", "0") == "1"

    if final_port != preferred_port:
        logger.warning("Port taken, using next free port", extra={"preferred": preferred_port, "port": final_port})

    app.run(host="0.0.0.0", port=final_port, debug=debug)
