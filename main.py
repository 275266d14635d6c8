import os
import uvicorn
from manganime.core.log import setup_logging

def main():
    setup_logging()
    uvicorn.run(
        "manganime.main:app",
        host=os.environ.get("MANGANIME_HOST", "127.0.0.1"),
        port=int(os.environ.get("MANGANIME_PORT", "8000")),
    )

if __name__ == "__main__":
    main()
