# app/core/config.py

import os
from dotenv import load_dotenv

# Caminho da raiz do projeto (onde está o main.py e o .env)
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
ENV_PATH = os.path.join(BASE_DIR, ".env")

# Carrega variáveis do arquivo .env, se existir
if os.path.exists(ENV_PATH):
    load_dotenv(ENV_PATH)


class Settings:
    def __init__(self) -> None:
        # SQLite local por padrão se não houver .env
        self.DATABASE_URL: str = os.getenv(
            "DATABASE_URL",
            "sqlite:///./landedcost.db",
        )
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # Cotação do dólar (sugestão de câmbio para novas simulações)
        self.FX_QUOTE_URL: str = os.getenv(
            "FX_QUOTE_URL",
            "https://economia.awesomeapi.com.br/json/last/USD-BRL",
        )
        self.FX_QUOTE_TIMEOUT: float = float(os.getenv("FX_QUOTE_TIMEOUT", "10"))

        # Front (Next em localhost:3000) por padrão
        self.CORS_ORIGINS: list[str] = [
            origin.strip()
            for origin in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if origin.strip()
        ]


settings = Settings()
