from fastapi import FastAPI
from app.config import Settings
from app.logging_config import setup_logging
from app.routers import agent, orders, webhook

setup_logging(Settings.from_env().log_level)

app = FastAPI()

# Include Routers
app.include_router(webhook.router)
app.include_router(agent.router)
app.include_router(orders.router)

@app.get("/")
def read_root():
    return {"message": "Facebook AI sales agent is ready"}
