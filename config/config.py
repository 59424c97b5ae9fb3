from dotenv import load_dotenv
import os

load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
# Sem STRICT_PERSISTENCE, falhas de escrita no Supabase viram sucesso sintetizado
STRICT_PERSISTENCE = os.getenv("STRICT_PERSISTENCE", "false").strip().lower() in ("1", "true", "yes", "on")
LOCAL_STORE_PATH = os.getenv("LOCAL_STORE_PATH")
ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",") if o.strip()]
