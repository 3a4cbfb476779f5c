from fastapi import FastAPI
from selene.api.public import router as public_router

app = FastAPI(title="selene public api")
app.include_router(public_router)
