"""Project root entry point for launching the catalogue API."""

from __future__ import annotations

import os


def main():
    from msgsource.web import create_app

    app = create_app()
    app.run(
        host=os.environ.get("MSGSOURCE_HOST", "127.0.0.1"),
        port=int(os.environ.get("MSGSOURCE_PORT", "5500")),
        debug=os.environ.get("MSGSOURCE_DEBUG") == "1",
    )


if __name__ == "__main__":
    main()
