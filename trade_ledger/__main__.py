"""Run the API server: python -m trade_ledger"""

import uvicorn

from trade_ledger.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "trade_ledger.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    main()
