# backend/wsgi.py
from optometry import create_app

app = create_app()
