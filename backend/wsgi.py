# backend/wsgi.py
from muttonhub import create_app

app = create_app()
