"""Create the database tables by hand, without Alembic. Uses DATABASE_URL."""
from dotenv import load_dotenv
load_dotenv()

from compcoach.core.config import load_settings
from compcoach.db.base import Base
from compcoach.db.session import build_engine
import compcoach.models  # noqa: F401 - register all models with Base

if __name__ == "__main__":
    settings = load_settings()
    print("Creating database tables...")
    Base.metadata.create_all(bind=build_engine(settings.database_url))
    print("✅ All tables created successfully!")
