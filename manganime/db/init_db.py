from sqlmodel import SQLModel
from manganime.core.config import DATA_DIR
from manganime.db.session import engine
from manganime.models import StorageEntry

def init_db():
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine, tables=[StorageEntry.__table__])
