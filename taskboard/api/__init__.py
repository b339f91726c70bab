"""HTTP and websocket surface. The app factory lives in `taskboard.api.app`."""
