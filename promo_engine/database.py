from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.engine.url import make_url

from promo_engine.config import DATABASE_URL

# Only sqlite needs extra connect_args; pool sizing applies to server databases
url = make_url(DATABASE_URL)
connect_args = {}
engine_kwargs = {}
if url.get_backend_name() == "sqlite":
    connect_args["check_same_thread"] = False
else:
    engine_kwargs.update(pool_size=5, max_overflow=10)

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True,          # helps recycle stale connections
    **engine_kwargs,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
