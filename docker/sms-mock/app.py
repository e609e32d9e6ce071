import logging
import sys

from fastapi import FastAPI, Request, Response, status
from pydantic import BaseModel, Field

logging.basicConfig(stream=sys.stdout, level=logging.INFO, format="%(asctime)sZ %(levelname)s %(message)s")

app = FastAPI(title="SMS Gateway Mock", version="1.0.0")


class SendSms(BaseModel):
    to: str = Field(..., pattern=r"^\+\d{11}$")
    body: str


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/messages", status_code=status.HTTP_202_ACCEPTED)
async def send(payload: SendSms, request: Request) -> Response:
    idem = request.headers.get("Idempotency-Key")
    logging.info("SMS-MOCK send to=%s idem=%s body=%r", payload.to, idem, payload.body)
    return Response(status_code=status.HTTP_202_ACCEPTED)
