from merchant_api.core.app_factory import create_app

app = create_app()


if __name__ == "__main__":
    import uvicorn

    # A single worker: rate limit windows live in process memory
    uvicorn.run("merchant_api.main:app", host="0.0.0.0", port=8000, workers=1)
