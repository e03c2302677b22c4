"""
MT Kenya News API
=================

Runs the newsroom API with the built-in server.

Run with:
    python main.py

Or through the Flask CLI:
    flask --app main init-db
    flask --app main seed
    flask --app main run --port 4000
"""

import logging

from newsroom import create_app

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")

app = create_app()


if __name__ == '__main__':
    port = app.config['PORT']
    print("\n" + "=" * 60)
    print("MT Kenya News API")
    print("=" * 60)
    print(f"API:      http://localhost:{port}/api/articles")
    print(f"Health:   http://localhost:{port}/health")
    print(f"Admin:    POST http://localhost:{port}/api/admin/login")
    print("=" * 60 + "\n")

    app.run(host='0.0.0.0', port=port, debug=False)
