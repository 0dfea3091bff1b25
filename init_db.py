# init_db.py
import logging

from app.db.init_db import init_db

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
