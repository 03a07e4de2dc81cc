"""
shopfolio/routers/checkout.py
Checkout session backend: the mobile client asks for a hosted payment session, the user's
browser lands on /success or /cancel afterwards.

Endpoints
- GET  /                             health check
- POST /create-checkout-session      {items, successUrl, cancelUrl} -> {sessionId, url}
- GET  /session-status/{session_id}  -> {status, customerEmail}
- GET  /success, GET /cancel         static pages for the browser

Error bodies are always {"error": "..."}.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, JSONResponse

from shopfolio.config import Settings, get_settings
from shopfolio.integrations import payment
from shopfolio.schemas.cart import CreateCheckoutSessionBody

router = APIRouter(tags=["Checkout"])


_PAGE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{title}</title>
  <style>
    body {{ font-family: -apple-system, sans-serif; display: flex; justify-content: center; align-items: center; min-height: 100vh; margin: 0; background: {background}; }}
    .card {{ text-align: center; padding: 40px; background: white; border-radius: 16px; box-shadow: 0 4px 12px rgba(0,0,0,0.1); max-width: 400px; }}
    h1 {{ color: {accent}; font-size: 28px; }}
    p {{ color: #666; font-size: 16px; line-height: 1.5; }}
    .icon {{ font-size: 64px; }}
  </style>
</head>
<body>
  <div class="card">
    <div class="icon">{icon}</div>
    <h1>{title}</h1>
    <p>{body}</p>
    <p style="color:#999; font-size:12px;">{footer}</p>
  </div>
</body>
</html>
"""

SUCCESS_PAGE = _PAGE.format(
    title="Payment successful!",
    background="#f0fdf4",
    accent="#16a34a",
    icon="&#9989;",
    body="Your order has been processed.",
    footer="You can close this window and return to the app.",
)

CANCEL_PAGE = _PAGE.format(
    title="Payment cancelled",
    background="#fef2f2",
    accent="#dc2626",
    icon="&#10060;",
    body="You have not been charged. You can try again from the app.",
    footer="",
)


@router.get("/")
def health():
    return {"status": "ok", "message": "Checkout backend running"}


@router.post("/create-checkout-session")
def create_checkout_session(body: CreateCheckoutSessionBody, settings: Settings = Depends(get_settings)):
    if not body.items:
        return JSONResponse(status_code=400, content={"error": "No products to pay for"})

    ok, result = payment.create_checkout_session(
        body.items,
        success_url=body.success_url or settings.default_success_url,
        cancel_url=body.cancel_url or settings.default_cancel_url,
        settings=settings,
    )
    if not ok:
        return JSONResponse(status_code=500, content={"error": result.get("error") or "Payment session failed"})
    return result


@router.get("/session-status/{session_id}")
def session_status(session_id: str, settings: Settings = Depends(get_settings)):
    ok, result = payment.retrieve_session_status(session_id, settings=settings)
    if not ok:
        return JSONResponse(status_code=500, content={"error": result.get("error") or "Status lookup failed"})
    return result


@router.get("/success", response_class=HTMLResponse)
def success_page():
    return SUCCESS_PAGE


@router.get("/cancel", response_class=HTMLResponse)
def cancel_page():
    return CANCEL_PAGE
