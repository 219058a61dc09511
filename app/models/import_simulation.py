# app/models/import_simulation.py

from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    JSON,
    DateTime,
)
from app.core.database import Base


class ImportSimulation(Base):
    __tablename__ = "import_simulations"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(8), unique=True, index=True, nullable=False)  # ex.: "K3Z9Q1AB"

    name = Column(String(255), nullable=False)
    supplier_name = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    # Só entradas; campos calculados são refeitos ao carregar
    configuration = Column(JSON, nullable=False, default=dict)
    items = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        index=True,
    )
