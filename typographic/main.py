# -*- coding: utf-8 -*-
# Entry point for `flask --app typographic.main run` and gunicorn
from typographic.factory import create_app

app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000)
