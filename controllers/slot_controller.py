from fastapi import APIRouter, Depends, HTTPException
from typing import Annotated
from pydantic import BaseModel

from controllers.availability_controller import get_coordinator
from helpers.errors import AvailabilityError
from helpers.jwt_token import get_current_claims
from helpers.slot_claims import SlotClaimCoordinator


slot_router = APIRouter(prefix="/slots")


class ClaimRequest(BaseModel):
    doctor_id: int
    clinic_id: int
    date: str
    slot_index: int
    booking_reference: str


@slot_router.post("/claim")
async def claim_slot(
    req: ClaimRequest,
    _: Annotated[dict, Depends(get_current_claims)],
    coordinator: Annotated[SlotClaimCoordinator, Depends(get_coordinator)],
):
    try:
        result = await coordinator.claim(req.doctor_id, req.clinic_id, req.date, req.slot_index, req.booking_reference)
        if not result.succeeded:
            raise HTTPException(status_code=409, detail="This slot is already booked")
        return {"success": True, "detail": "Slot claimed", "data": result.model_dump(mode="json")}
    except HTTPException:
        raise
    except AvailabilityError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to claim slot: {str(e)}")


@slot_router.post("/release")
async def release_slot(
    req: ClaimRequest,
    _: Annotated[dict, Depends(get_current_claims)],
    coordinator: Annotated[SlotClaimCoordinator, Depends(get_coordinator)],
):
    try:
        result = await coordinator.release(req.doctor_id, req.clinic_id, req.date, req.slot_index, req.booking_reference)
        if not result.succeeded:
            raise HTTPException(status_code=409, detail="Slot is not held by this booking")
        return {"success": True, "detail": "Slot released", "data": result.model_dump(mode="json")}
    except HTTPException:
        raise
    except AvailabilityError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to release slot: {str(e)}")
