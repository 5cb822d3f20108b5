import uvicorn
from orgauth.core.config import PORT
from orgauth.main import app

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=PORT)
