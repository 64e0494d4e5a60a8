import uvicorn

from .core.config import PORT


def main() -> None:
    uvicorn.run("gameshelf.main:app", host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    main()
