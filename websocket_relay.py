#!/usr/bin/env python3
"""
Sensor Relay launcher.

Starts the WebSocket relay and, unless HTTP_ENABLED=false, its status API.
"""

import sys
from pathlib import Path

# Add src directory to Python path
src_path = Path(__file__).parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from sensor_relay.relay.server.relay_server import run

if __name__ == "__main__":
    run()
