"""AWS Lambda entry point: the API and the static file manager page behind a function URL."""
from mangum import Mangum

from file_manager_api.main import create_app
from file_manager_api.settings import get_settings

app = create_app(get_settings())

# Responses with other content types are returned base64-encoded
TEXT_MIME_TYPES = [
    "application/json",
    "text/html",
    "text/css",
    "text/javascript",
]

handler = Mangum(app, lifespan="off", text_mime_types=TEXT_MIME_TYPES)
