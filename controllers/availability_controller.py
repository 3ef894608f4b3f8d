from fastapi import APIRouter, Depends, HTTPException
from typing import Annotated, List, Optional
from pydantic import BaseModel, Field

from helpers.availability_search import AvailabilitySearchIndex, AvailabilityState
from helpers.bulk_generation import BulkGenerationOrchestrator, summarize
from helpers.errors import AvailabilityError, NonWorkingDay
from helpers.jwt_token import require_roles
from helpers.settings import Settings, get_settings
from helpers.slot_calendar import SlotCalendarGenerator
from helpers.slot_claims import SlotClaimCoordinator


availability_router = APIRouter(prefix="/availability")

StaffOnly = Annotated[dict, Depends(require_roles("doctor", "admin"))]


def get_generator(settings: Annotated[Settings, Depends(get_settings)]) -> SlotCalendarGenerator:
    return SlotCalendarGenerator(settings)


def get_orchestrator(settings: Annotated[Settings, Depends(get_settings)]) -> BulkGenerationOrchestrator:
    return BulkGenerationOrchestrator(settings)


def get_search_index(settings: Annotated[Settings, Depends(get_settings)]) -> AvailabilitySearchIndex:
    return AvailabilitySearchIndex(settings)


def get_coordinator(settings: Annotated[Settings, Depends(get_settings)]) -> SlotClaimCoordinator:
    return SlotClaimCoordinator(settings)


class GenerateRequest(BaseModel):
    doctor_id: int
    clinic_id: int
    date: str


class BulkGenerateRequest(BaseModel):
    doctor_id: int
    clinic_id: int
    dates: Optional[List[str]] = Field(default=None, min_length=1)
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class SlotRequest(BaseModel):
    doctor_id: int
    clinic_id: int
    date: str
    slot_index: int


@availability_router.post("/generate", status_code=201)
async def generate_availability(
    req: GenerateRequest,
    _: StaffOnly,
    generator: Annotated[SlotCalendarGenerator, Depends(get_generator)],
):
    try:
        calendar = await generator.generate(req.doctor_id, req.clinic_id, req.date)
        return {
            "success": True,
            "detail": "Availability generated successfully",
            "data": calendar.model_dump(mode="json"),
        }
    except NonWorkingDay:
        raise HTTPException(status_code=400, detail="Doctor does not work on this day")
    except AvailabilityError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to generate availability: {str(e)}")


@availability_router.post("/bulk-generate")
async def bulk_generate_availability(
    req: BulkGenerateRequest,
    _: StaffOnly,
    orchestrator: Annotated[BulkGenerationOrchestrator, Depends(get_orchestrator)],
):
    try:
        if req.dates:
            outcomes = await orchestrator.generate_range(req.doctor_id, req.clinic_id, req.dates)
        elif req.start_date and req.end_date:
            outcomes = await orchestrator.generate_period(req.doctor_id, req.clinic_id, req.start_date, req.end_date)
        else:
            raise HTTPException(status_code=400, detail="Provide either dates or start_date and end_date")
        return {
            "success": True,
            "detail": "Bulk availability generation completed",
            "results": [o.model_dump(mode="json") for o in outcomes],
            "summary": summarize(outcomes),
        }
    except HTTPException:
        raise
    except AvailabilityError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to generate availability: {str(e)}")


@availability_router.get("/doctor")
async def get_doctor_availability(
    doctor_id: int,
    clinic_id: int,
    date: str,
    search: Annotated[AvailabilitySearchIndex, Depends(get_search_index)],
    generator: Annotated[SlotCalendarGenerator, Depends(get_generator)],
    generate: bool = False,
):
    try:
        availability = await search.get_doctor_availability(doctor_id, clinic_id, date)
        calendar = availability.calendar
        if availability.state == AvailabilityState.NOT_GENERATED and generate:
            try:
                calendar = await generator.generate(doctor_id, clinic_id, date)
            except NonWorkingDay:
                calendar = None

        slots = calendar.available_slots() if calendar else []
        return {
            "success": True,
            "state": AvailabilityState.GENERATED.value if calendar else availability.state.value,
            "doctor_id": doctor_id,
            "clinic_id": clinic_id,
            "date": date,
            "slots": [s.model_dump(mode="json") for s in slots],
            "total_slots": calendar.slot_count if calendar else 0,
            "available_slots": len(slots),
        }
    except AvailabilityError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch availability: {str(e)}")


@availability_router.get("/doctors")
async def get_available_doctors(
    clinic_id: int,
    date: str,
    slot_index: int,
    search: Annotated[AvailabilitySearchIndex, Depends(get_search_index)],
    specialization: Optional[str] = None,
):
    try:
        doctors = await search.find_available_doctor_profiles(clinic_id, date, slot_index, specialization)
        return {
            "success": True,
            "clinic_id": clinic_id,
            "date": date,
            "slot_index": slot_index,
            "doctors": [d.model_dump(mode="json") for d in doctors],
            "total_available": len(doctors),
        }
    except AvailabilityError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch available doctors: {str(e)}")


@availability_router.put("/mark-unavailable")
async def mark_slot_unavailable(
    req: SlotRequest,
    _: StaffOnly,
    coordinator: Annotated[SlotClaimCoordinator, Depends(get_coordinator)],
):
    try:
        result = await coordinator.block_slot(req.doctor_id, req.clinic_id, req.date, req.slot_index)
        if not result.succeeded:
            raise HTTPException(status_code=409, detail="Slot is already booked")
        return {"success": True, "detail": "Slot marked as unavailable", "data": result.model_dump(mode="json")}
    except HTTPException:
        raise
    except AvailabilityError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to block slot: {str(e)}")


@availability_router.put("/mark-available")
async def mark_slot_available(
    req: SlotRequest,
    _: StaffOnly,
    coordinator: Annotated[SlotClaimCoordinator, Depends(get_coordinator)],
):
    try:
        result = await coordinator.unblock_slot(req.doctor_id, req.clinic_id, req.date, req.slot_index)
        if not result.succeeded:
            raise HTTPException(status_code=409, detail="Slot is not blocked")
        return {"success": True, "detail": "Slot marked as available", "data": result.model_dump(mode="json")}
    except HTTPException:
        raise
    except AvailabilityError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to unblock slot: {str(e)}")


@availability_router.put("/block-day")
async def block_day(
    req: GenerateRequest,
    _: StaffOnly,
    coordinator: Annotated[SlotClaimCoordinator, Depends(get_coordinator)],
):
    try:
        blocked = await coordinator.block_day(req.doctor_id, req.clinic_id, req.date)
        return {"success": True, "detail": "Day blocked", "blocked_slots": blocked}
    except AvailabilityError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to block day: {str(e)}")


@availability_router.put("/unblock-day")
async def unblock_day(
    req: GenerateRequest,
    _: StaffOnly,
    coordinator: Annotated[SlotClaimCoordinator, Depends(get_coordinator)],
):
    try:
        released = await coordinator.unblock_day(req.doctor_id, req.clinic_id, req.date)
        return {"success": True, "detail": "Day unblocked", "released_slots": released}
    except AvailabilityError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to unblock day: {str(e)}")
