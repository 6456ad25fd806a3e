from fastapi import APIRouter, status
from ...services.permissions import admin_dependency
from ...services.notification_service import notifier_dependency
from ...schemas.notification import SendEmailRequest, SendEmailResponse

router = APIRouter(prefix='/notification', tags=['notification'])


@router.post("/email", status_code=status.HTTP_201_CREATED, response_model=SendEmailResponse)
async def send_email(
    request: SendEmailRequest,
    admin: admin_dependency,
    notifier: notifier_dependency
):
    # Delivery failures are logged by the notifier and not reported here
    notifier.send_email(request.to, request.subject, request.template, request.context)
    return {"success": True, "message": f"Email sent to {request.to}"}
