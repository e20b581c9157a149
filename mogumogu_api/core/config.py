import os

# ✅ Database (service credentials, bypasses row-level security)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./mogumogu.db")

# ✅ Identity service
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
# Optional: when set, HS256 tokens are checked locally before the exchange
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# ✅ OpenAI
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL_CONSULTATION = os.getenv("OPENAI_MODEL_CONSULTATION", "gpt-4o-mini")
OPENAI_MODEL_RECIPE_GENERATION = os.getenv("OPENAI_MODEL_RECIPE_GENERATION", "gpt-4o-mini")
OPENAI_MODEL_RECIPE_SEARCH = os.getenv("OPENAI_MODEL_RECIPE_SEARCH", "gpt-4o-mini")
OPENAI_MODEL_BLOG = os.getenv("OPENAI_MODEL_BLOG", "gpt-4o-mini")

# ✅ Free tier (per day)
FREE_CONSULTATIONS_PER_DAY = int(os.getenv("FREE_CONSULTATIONS_PER_DAY", "3"))
FREE_RECIPE_GENERATIONS_PER_DAY = int(os.getenv("FREE_RECIPE_GENERATIONS_PER_DAY", "1"))
FREE_RECIPE_SEARCHES_PER_DAY = int(os.getenv("FREE_RECIPE_SEARCHES_PER_DAY", "3"))

# Empty means server-local midnight
QUOTA_TIMEZONE = os.getenv("QUOTA_TIMEZONE", "")

# ✅ Stripe
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
STRIPE_MONTHLY_PRICE_ID = os.getenv("STRIPE_MONTHLY_PRICE_ID")
STRIPE_YEARLY_PRICE_ID = os.getenv("STRIPE_YEARLY_PRICE_ID")
STRIPE_TRIAL_DAYS = int(os.getenv("STRIPE_TRIAL_DAYS", "7"))

# ✅ Content sources
YOUTUBE_API_KEY = os.getenv("YOUTUBE_API_KEY")
RAKUTEN_APP_ID = os.getenv("RAKUTEN_APP_ID")
VIDEO_PAGE_DELAY_SECONDS = float(os.getenv("VIDEO_PAGE_DELAY_SECONDS", "0.2"))
RAKUTEN_PAGE_DELAY_SECONDS = float(os.getenv("RAKUTEN_PAGE_DELAY_SECONDS", "1.0"))

# ✅ LINE Messaging
LINE_MESSAGING_CHANNEL_SECRET = os.getenv("LINE_MESSAGING_CHANNEL_SECRET")
LINE_MESSAGING_CHANNEL_TOKEN = os.getenv("LINE_MESSAGING_CHANNEL_TOKEN")

# ✅ Frontend
APP_URL = os.getenv("APP_URL", "https://mogumogu-omega.vercel.app")

# ✅ Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "logs")

# ✅ Migrations (set RUN_MIGRATIONS=1 on the instance that owns the schema)
RUN_MIGRATIONS = os.getenv("RUN_MIGRATIONS", "0") == "1"
