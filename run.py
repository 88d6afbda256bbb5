"""
Simple script to run the ChitFund Ledger API server.
"""
import logging

import uvicorn

from chitfund import config

if __name__ == "__main__":
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print(f"Starting {config.APP_NAME}...")
    print(f"Database: {config.DATABASE_PATH}")
    print("Access at: http://127.0.0.1:8000")
    print("Press Ctrl+C to stop")
    print("-" * 40)

    uvicorn.run(
        "chitfund.main:app",
        host="127.0.0.1",
        port=8000,
        reload=config.IS_DEVELOPMENT
    )
