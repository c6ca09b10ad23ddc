# backend/wsgi.py
from menuhub import create_app

app = create_app()
