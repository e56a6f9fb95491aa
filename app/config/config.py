import os

from dotenv import load_dotenv

load_dotenv()

APP_ENV = os.getenv("APP_ENV", "development")
PORT = int(os.getenv("PORT", "5000"))

SESSION_SECRET = os.getenv("SESSION_SECRET", "your-secret-key-change-in-production")
SESSION_MAX_AGE = 24 * 60 * 60  # 24 hours

# Single operator account; login is refused while either value is unset
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
