import logging
import os

import uvicorn

if __name__ == "__main__":
    logging.basicConfig(
        level=os.environ.get("CYCLE_TRACKER_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("Starting Cycle Tracker API Server...")
    print("Docs available at: http://localhost:8000/docs")

    uvicorn.run(
        "tracker.api.server:app",
        host="0.0.0.0",
        port=int(os.environ.get("CYCLE_TRACKER_PORT", "8000")),
        reload=True
    )
