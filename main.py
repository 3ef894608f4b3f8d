import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from helpers.tortoise_config import lifespan
from controllers.availability_controller import availability_router
from controllers.slot_controller import slot_router
from helpers.settings import get_settings


logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)


app = FastAPI(lifespan=lifespan)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(availability_router, prefix='/api', tags=['Availability'])
app.include_router(slot_router, prefix='/api', tags=['Slots'])


@app.get('/')
def greetings():
    return {
        "Message": "Clinic availability service is running"
    }
