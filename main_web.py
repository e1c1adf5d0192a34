import os

import uvicorn
from web.api import app

if __name__ == "__main__":
    uvicorn.run(
        "web.api:app",
        host=os.environ.get("TRADEQUOTE_HOST", "127.0.0.1"),
        port=int(os.environ.get("TRADEQUOTE_PORT", "8000")),
        reload=True,
    )
