# substack/config.py
import os
from dotenv import load_dotenv

load_dotenv()

# Supabase settings
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

SUBSCRIPTIONS_TABLE = os.getenv("SUBSCRIPTIONS_TABLE", "subscriptions")
POSTS_TABLE = os.getenv("POSTS_TABLE", "posts")
LIKES_TABLE = os.getenv("LIKES_TABLE", "likes")

# Local snapshot cache (one JSON file per key)
SNAPSHOT_DIR = os.getenv("SNAPSHOT_DIR", ".substack")

# Feed settings
FEED_FETCH_TIMEOUT = float(os.getenv("FEED_FETCH_TIMEOUT", "15"))
FEED_MAX_ITEMS = int(os.getenv("FEED_MAX_ITEMS", "100"))
FEED_ITEMS_PER_SOURCE = int(os.getenv("FEED_ITEMS_PER_SOURCE", "10"))
FEED_MAX_WORKERS = int(os.getenv("FEED_MAX_WORKERS", "4"))
FEED_REFRESH_INTERVAL = int(os.getenv("FEED_REFRESH_INTERVAL", "300"))  # 5 minutes

# Payment reminders
NOTIFY_DAYS_BEFORE = int(os.getenv("NOTIFY_DAYS_BEFORE", "3"))
NOTIFY_ON_PAYMENT_DAY = os.getenv("NOTIFY_ON_PAYMENT_DAY", "true").lower() in ("1", "true", "yes")
NOTIFICATION_TIME = os.getenv("NOTIFICATION_TIME", "09:00")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
