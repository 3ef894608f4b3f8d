from typing import List, Optional

from helpers.errors import NotAffiliated, translate_store_errors
from models.affiliation import Affiliation, AffiliationStatus


class AffiliationDirectory:
    """Read-only view over doctor/clinic affiliations and their working hours."""

    @translate_store_errors
    async def find_affiliation(self, doctor_id: int, clinic_id: int) -> Optional[Affiliation]:
        return await Affiliation.get_or_none(doctor_id=doctor_id, clinic_id=clinic_id)

    async def get_active_affiliation(self, doctor_id: int, clinic_id: int) -> Affiliation:
        affiliation = await self.find_affiliation(doctor_id, clinic_id)
        if affiliation is None or not affiliation.is_active:
            raise NotAffiliated(f"Doctor {doctor_id} is not affiliated with clinic {clinic_id}")
        return affiliation

    @translate_store_errors
    async def list_active_affiliations(self, clinic_id: int) -> List[Affiliation]:
        return await Affiliation.filter(
            clinic_id=clinic_id, status=AffiliationStatus.ACTIVE
        ).prefetch_related("doctor")
