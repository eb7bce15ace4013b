import os

import uvicorn


def main() -> None:
    """Run the API; auto-reload only when WORKOUT_MIX_RELOAD is set."""
    uvicorn.run(
        "api.main:app",
        host=os.getenv("WORKOUT_MIX_HOST", "127.0.0.1"),
        port=int(os.getenv("WORKOUT_MIX_PORT", "8000")),
        reload=bool(os.getenv("WORKOUT_MIX_RELOAD")),
    )


if __name__ == "__main__":
    main()
