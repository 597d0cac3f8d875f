# backend/wsgi.py
# FLASK_APP entry point (python -m flask --app wsgi <group> <command>)
from alfapos import create_app

app = create_app()
