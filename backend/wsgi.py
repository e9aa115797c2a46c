# backend/wsgi.py
from restopos import create_app

app = create_app()
