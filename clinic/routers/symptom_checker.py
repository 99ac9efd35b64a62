from fastapi import APIRouter, status

from clinic.schemas.symptom import SymptomQuery
from clinic.services import symptom_service
from clinic.utils.errors import ValidationFailed
from clinic.utils.response import create_response, handle_exception

router = APIRouter(prefix="/symptom-checker", tags=["Symptom Checker"])


@router.post("/search")
async def search(body: SymptomQuery):
    try:
        if not body.query.strip():
            raise ValidationFailed("Please provide a question or describe your symptoms.")

        result = await symptom_service.answer(body)
        return create_response(
            message="Symptom checker response",
            data=result,
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)
