import logging
import os
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from auth import Authorized, Unauthorized, authorize_admin, is_admin
from database import (
    BOOKINGS, SERVICES, USERS,
    Database, DatabaseUnavailable,
    delete_result, id_filter, insert_result, now, serialize, update_result,
)
from logging_config import setup_logging
from mailer import Mailer
from schemas import (
    CANCELLED, PENDING, VALID_ROLES,
    Booking, RoleUpdate, Service, StatusUpdate, User, UserUpdate,
)

setup_logging(os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

PORT = int(os.getenv("PORT", 5001))
ON_VERCEL = os.getenv("VERCEL") == "1"

ALLOWED_ORIGINS = ["http://localhost:3000", "http://localhost:3001"]
ALLOWED_ORIGIN_REGEX = r"^https?://.*\.(vercel\.app|web\.app|firebaseapp\.com)$"

app = FastAPI(title="Care.xyz Booking API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_origin_regex=ALLOWED_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.database = Database.from_env()
app.state.mailer = Mailer.from_env()


@app.exception_handler(DatabaseUnavailable)
def database_unavailable(request: Request, exc: DatabaseUnavailable):
    logger.error("Database unavailable during %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Database unavailable"})


# Dependencies

def get_db(request: Request) -> Database:
    db = request.app.state.database
    db.ensure_connected()
    return db


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def require_admin(
    caller_email: Optional[str] = Query(None, alias="email", description="Caller email"),
    x_user_email: Optional[str] = Header(None),
    db: Database = Depends(get_db),
) -> dict:
    result = authorize_admin(db, caller_email or x_user_email)
    if isinstance(result, Authorized):
        return result.user
    status_code = 401 if isinstance(result, Unauthorized) else 403
    raise HTTPException(status_code=status_code, detail=result.detail)


@app.get("/", response_class=PlainTextResponse)
def root():
    return "Care.xyz server is running"


@app.get("/test")
def test_database(request: Request):
    db: Database = request.app.state.database
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if db.url else "❌ Not Set",
        "database_name": db.name,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        response["collections"] = db.list_collection_names()
        response["database"] = "✅ Connected & Working"
        response["connection_status"] = "Connected"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    return response


# ------------------------ SERVICES ------------------------
@app.get("/services")
def list_services(email: Optional[str] = None, db: Database = Depends(get_db)):
    query = {"createdBy": email} if email else {}
    return db.get_documents(SERVICES, query)


@app.get("/services/{service_id}")
def get_service(service_id: str, db: Database = Depends(get_db)):
    doc = db.services.find_one(id_filter(service_id))
    if not doc:
        raise HTTPException(status_code=404, detail="Service not found")
    return serialize(doc)


@app.post("/services")
def create_service(service: Service, db: Database = Depends(get_db)):
    return insert_result(db.create_document(SERVICES, service.fields()))


@app.put("/services/{service_id}")
def update_service(service_id: str, service: Service, db: Database = Depends(get_db)):
    data = service.fields()
    if not data:
        raise HTTPException(status_code=400, detail="No fields to update")
    return update_result(db.services.update_one(id_filter(service_id), {"$set": data}))


@app.delete("/services/{service_id}")
def delete_service(service_id: str, db: Database = Depends(get_db)):
    return delete_result(db.services.delete_one(id_filter(service_id)))


# ------------------------ USERS ------------------------
@app.post("/users")
def create_user(user: User, db: Database = Depends(get_db)):
    data = user.fields()
    if db.users.find_one({"email": data["email"]}):
        return {"message": "User already exists", "insertedId": None}
    data["role"] = "user"
    return insert_result(db.create_document(USERS, data))


@app.get("/users/{email}")
def get_user(email: str, db: Database = Depends(get_db)):
    doc = db.users.find_one({"email": email})
    if not doc:
        raise HTTPException(status_code=404, detail="User not found")
    return serialize(doc)


@app.put("/users/{email}")
def update_user(email: str, user: UserUpdate, db: Database = Depends(get_db)):
    data = user.fields()
    # Email is the key and role changes go through the admin endpoint
    data.pop("email", None)
    data.pop("role", None)
    data.pop("createdAt", None)
    update = {"$setOnInsert": {"role": "user", "createdAt": now()}}
    if data:
        update["$set"] = data
    return update_result(db.users.update_one({"email": email}, update, upsert=True))


# ------------------------ BOOKINGS ------------------------
@app.post("/bookings")
def create_booking(
    booking: Booking,
    db: Database = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    data = booking.fields()
    data["status"] = PENDING
    result = db.create_document(BOOKINGS, data)
    mailer.send_booking_confirmation(data)
    return insert_result(result)


@app.get("/bookings")
def list_bookings(email: Optional[str] = None, db: Database = Depends(get_db)):
    if not email:
        raise HTTPException(status_code=400, detail="Email query parameter is required")
    return db.get_documents(BOOKINGS, {"userEmail": email})


@app.get("/bookings/{booking_id}")
def get_booking(booking_id: str, db: Database = Depends(get_db)):
    doc = db.bookings.find_one(id_filter(booking_id))
    if not doc:
        raise HTTPException(status_code=404, detail="Booking not found")
    return serialize(doc)


@app.patch("/bookings/{booking_id}")
def update_booking_status(booking_id: str, payload: StatusUpdate, db: Database = Depends(get_db)):
    return update_result(db.bookings.update_one(id_filter(booking_id), {"$set": {"status": payload.status}}))


@app.delete("/bookings/{booking_id}")
def delete_booking(booking_id: str, db: Database = Depends(get_db)):
    return delete_result(db.bookings.delete_one(id_filter(booking_id)))


# ------------------------ ADMIN ------------------------
@app.get("/admin/check/{email}")
def check_admin(email: str, db: Database = Depends(get_db)):
    return {"isAdmin": is_admin(db.users.find_one({"email": email}))}


@app.get("/admin/stats")
def admin_stats(admin: dict = Depends(require_admin), db: Database = Depends(get_db)):
    revenue = list(db.bookings.aggregate([
        {"$match": {"status": {"$ne": CANCELLED}}},
        {"$group": {"_id": None, "total": {"$sum": "$totalCost"}}},
    ]))
    status_counts = list(db.bookings.aggregate([
        {"$group": {"_id": "$status", "count": {"$sum": 1}}},
    ]))
    return {
        "totalBookings": db.bookings.estimated_document_count(),
        "totalUsers": db.users.estimated_document_count(),
        "totalServices": db.services.estimated_document_count(),
        "totalRevenue": revenue[0]["total"] if revenue else 0,
        "statusCounts": status_counts,
    }


@app.get("/admin/bookings")
def admin_list_bookings(
    status: Optional[str] = None,
    admin: dict = Depends(require_admin),
    db: Database = Depends(get_db),
):
    query = {"status": status} if status else {}
    return db.get_documents(BOOKINGS, query)


@app.get("/admin/users")
def admin_list_users(admin: dict = Depends(require_admin), db: Database = Depends(get_db)):
    return db.get_documents(USERS)


@app.patch("/admin/users/{email}/role")
def admin_update_role(
    email: str,
    payload: RoleUpdate,
    admin: dict = Depends(require_admin),
    db: Database = Depends(get_db),
):
    if payload.role not in VALID_ROLES:
        raise HTTPException(status_code=400, detail="Invalid role")
    logger.info("%s set role of %s to %s", admin.get("email"), email, payload.role)
    return update_result(db.users.update_one({"email": email}, {"$set": {"role": payload.role}}))


if __name__ == "__main__" and not ON_VERCEL:
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
