"""Web server for engagement plans: REST API plus an overview page."""

from __future__ import annotations

import webbrowser


def create_app(db_path: str = "") -> object:
	"""Create the Starlette ASGI application."""
	from .app import build_app

	return build_app(db_path=db_path)


def run_web_server(
	host: str = "127.0.0.1",
	port: int = 8430,
	db_path: str = "",
	open_browser: bool = False,
	log_level: str = "warning",
) -> None:
	"""Run the web server until interrupted."""
	import uvicorn

	app = create_app(db_path=db_path)

	if open_browser:
		import threading

		def _open():
			import time
			time.sleep(0.8)
			webbrowser.open(f"http://{host}:{port}")

		threading.Thread(target=_open, daemon=True).start()

	print(f"Engagement planner running at http://{host}:{port}")
	print("Press Ctrl+C to stop.")
	uvicorn.run(app, host=host, port=port, log_level=log_level)
