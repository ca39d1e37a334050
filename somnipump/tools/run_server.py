import uvicorn

from somnipump.config import settings

if __name__ == "__main__":
    uvicorn.run("somnipump.server:app", host=settings.api_host, port=settings.api_port)
