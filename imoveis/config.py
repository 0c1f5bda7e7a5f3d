from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Database
    database_url: str = "sqlite:///./imoveis.db"

    # App
    debug: bool = False
    log_level: str = "INFO"

    # Default derivation rates (percent units)
    itbi_pct: Decimal = Decimal("2")
    entrada_financiado_pct: Decimal = Decimal("5")
    ganho_capital_pct: Decimal = Decimal("15")
    comissao_corretor_pct: Decimal = Decimal("5")
    comissao_leiloeiro_pct: Decimal = Decimal("5")

    # Recompute
    derivation_tolerance: Decimal = Decimal("0.01")
    max_recompute_passes: int = 4

    # Lifecycle
    undo_grace_seconds: float = 5.0
    sale_date_offset_years: int = 1


settings = Settings()
