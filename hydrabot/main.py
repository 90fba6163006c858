import logging
import os
from typing import Optional

from flask import Flask

from hydrabot.api.webhook import api
from hydrabot.parser_engine.resolver import IntentResolver

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s:%(message)s")


# ================================
# APP FACTORY
# ================================
def create_app(resolver: Optional[IntentResolver] = None) -> Flask:
    app = Flask(__name__)
    # None means "build one from the environment on first request"
    app.config["INTENT_RESOLVER"] = resolver
    app.register_blueprint(api)
    return app


app = create_app()


# ================================
# START
# ================================
if __name__ == "__main__":
    port = int(os.environ.get("PORT", 10000))
    app.run(host="0.0.0.0", port=port)
