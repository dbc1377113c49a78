from datetime import timedelta

API = "/api/v1"


# --------------------------------------------------------------------
# Helpers
# --------------------------------------------------------------------
def register_worker(client, days, **overrides):
    payload = {
        "name": "Ravi Kumar",
        "phone": "+91 98765 43210",
        "location": "Mandya, Karnataka",
        "skills": ["Ploughing", "Harvesting"],
        "experience_years": 8,
        "daily_rate": 600,
        "hourly_rate": 75,
        "availability": [d.isoformat() for d in days],
        "languages": ["Kannada", "Hindi"],
    }
    payload.update(overrides)
    r = client.post(f"{API}/workers", json=payload)
    assert r.status_code == 201, r.text
    return r.json()


def register_farmer(client):
    r = client.post(f"{API}/farmers", json={"name": "Suresh Farmer", "phone": "9876543210"})
    assert r.status_code == 201, r.text
    return r.json()


def request_booking(client, worker, farmer, days, **overrides):
    payload = {
        "worker_id": worker["id"],
        "farmer_id": farmer["id"],
        "work_dates": [d.isoformat() for d in days],
        "work_types": ["Harvesting"],
        "billing_mode": "daily",
        "payment_method": "phonepe",
        "farmer_location": "Mandya, Karnataka",
    }
    payload.update(overrides)
    return client.post(f"{API}/bookings", json=payload)


def move(client, booking_id, event, actor, **extra):
    return client.post(f"{API}/bookings/{booking_id}/transitions",
                       json={"event": event, "actor": actor, **extra})


# --------------------------------------------------------------------
# Health & workers
# --------------------------------------------------------------------
def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["checks"]["database"]["status"] == "healthy"


def test_duplicate_worker_phone(client, future_days):
    register_worker(client, future_days)
    r = client.post(f"{API}/workers", json={
        "name": "Ravi Again", "phone": "+91 98765 43210", "daily_rate": 500, "hourly_rate": 60,
    })
    assert r.status_code == 400


def test_availability_hides_past_days(client, today, future_days):
    worker = register_worker(client, (today - timedelta(days=1),) + future_days[:2])
    r = client.get(f"{API}/workers/{worker['id']}/availability")
    assert r.json()["available_dates"] == [d.isoformat() for d in future_days[:2]]


def test_unknown_worker_is_404(client):
    assert client.get(f"{API}/workers/nope").status_code == 404


def test_search_and_quote(client, future_days):
    ravi = register_worker(client, future_days)
    register_worker(client, future_days, name="Lakshmi Devi", phone="+91 76543 21098",
                    skills=["Weeding"], daily_rate=500, hourly_rate=65)

    r = client.post(f"{API}/search", json={"skills": ["harvesting"]})
    body = r.json()
    assert body["pool_size"] == 2
    assert [w["id"] for w in body["workers"]] == [ravi["id"]]

    r = client.post(f"{API}/search", json={"sort_by": "price", "sort_order": "asc"})
    assert [w["name"] for w in r.json()["workers"]] == ["Lakshmi Devi", "Ravi Kumar"]

    r = client.post(f"{API}/search", json={"price_min": 900, "price_max": 100})
    assert r.status_code == 422

    r = client.post(f"{API}/quotes", json={
        "worker_id": ravi["id"], "date_count": 2, "billing_mode": "hourly",
        "start_time": "08:00", "end_time": "16:00",
    })
    assert r.json()["amount"] == 1200
    assert r.json()["hours"] == 8


# --------------------------------------------------------------------
# Booking lifecycle
# --------------------------------------------------------------------
def test_full_booking_lifecycle(client, future_days):
    worker = register_worker(client, future_days)
    farmer = register_farmer(client)

    r = request_booking(client, worker, farmer, future_days[:3])
    assert r.status_code == 201, r.text
    booking = r.json()
    assert booking["status"] == "pending"
    assert booking["total_amount"] == 1800

    assert move(client, booking["id"], "accept", "worker").json()["status"] == "confirmed"
    assert move(client, booking["id"], "complete", "farmer").json()["status"] == "completed"

    r = client.post(f"{API}/bookings/{booking['id']}/review",
                    json={"rating": 5, "comment": "Excellent work, very punctual"})
    assert r.status_code == 201, r.text
    review = r.json()

    r = client.post(f"{API}/bookings/{booking['id']}/review",
                    json={"rating": 1, "comment": "Changed my mind about it"})
    assert r.status_code == 409
    assert r.json()["detail"]["reason"] == "duplicate_review"

    stored = client.get(f"{API}/workers/{worker['id']}/reviews").json()["reviews"]
    assert [(s["id"], s["rating"], s["comment"]) for s in stored] == [
        (review["id"], 5, "Excellent work, very punctual")
    ]

    r = client.post(f"{API}/reviews/{review['id']}/response", json={"comment": "Thank you, happy to help"})
    assert r.json()["response"]["comment"] == "Thank you, happy to help"
    r = client.post(f"{API}/reviews/{review['id']}/response", json={"comment": "Second reply attempt"})
    assert r.json()["detail"]["reason"] == "duplicate_response"

    assert client.post(f"{API}/reviews/{review['id']}/helpful").json()["helpful_count"] == 1

    reviews = client.get(f"{API}/workers/{worker['id']}/reviews", params={"view": "top"}).json()
    assert [r["id"] for r in reviews["reviews"]] == [review["id"]]

    summary = client.get(f"{API}/workers/{worker['id']}/rating-summary").json()
    assert summary["count"] == 1
    assert summary["average"] == 5.0

    assert client.get(f"{API}/workers/{worker['id']}").json()["rating"] == 5.0

    intent = client.get(f"{API}/bookings/{booking['id']}/payment-intent").json()
    assert intent["payee_address"] == "+919876543210@ybl"
    assert intent["shows_qr"] is True
    assert intent["uri"].startswith("upi://pay?pa=+919876543210@ybl&pn=Ravi%20Kumar&am=1800")

    history = client.get(f"{API}/bookings/{booking['id']}/history").json()
    assert [e["action"] for e in history["entries"]] == [
        "BOOKING_CREATED", "BOOKING_ACCEPT", "BOOKING_COMPLETE", "BOOKING_REVIEWED",
    ]
    assert history["verified"] is True


def test_illegal_and_stale_transitions(client, future_days):
    worker = register_worker(client, future_days)
    farmer = register_farmer(client)
    booking = request_booking(client, worker, farmer, future_days[:1]).json()

    r = move(client, booking["id"], "decline", "worker")
    assert r.json()["status"] == "cancelled"

    r = move(client, booking["id"], "complete", "worker")
    assert r.status_code == 409
    assert r.json()["detail"] == {
        "reason": "illegal_transition",
        "message": "Cannot complete a cancelled booking",
        "current_status": "cancelled",
    }

    r = move(client, booking["id"], "accept", "worker", expected_status="pending")
    assert r.status_code == 409
    assert r.json()["detail"]["reason"] == "stale_state"


def test_review_before_completion_is_refused(client, future_days):
    worker = register_worker(client, future_days)
    farmer = register_farmer(client)
    booking = request_booking(client, worker, farmer, future_days[:1]).json()

    r = client.post(f"{API}/bookings/{booking['id']}/review",
                    json={"rating": 5, "comment": "Excellent work, very punctual"})
    assert r.status_code == 409
    assert r.json()["detail"]["reason"] == "illegal_transition"


def test_invalid_booking_requests(client, today, future_days):
    worker = register_worker(client, future_days)
    farmer = register_farmer(client)

    assert request_booking(client, worker, farmer, []).status_code == 422
    assert request_booking(client, worker, farmer, [today - timedelta(days=1)]).status_code == 422
    assert request_booking(client, worker, farmer, future_days[:1], billing_mode="hourly").status_code == 422
    assert request_booking(client, worker, farmer, future_days[:1], farmer_location=" ").status_code == 422

    r = request_booking(client, {"id": "missing"}, farmer, future_days[:1])
    assert r.status_code == 404


def test_cash_booking_has_no_payment_intent(client, future_days):
    worker = register_worker(client, future_days)
    farmer = register_farmer(client)
    booking = request_booking(client, worker, farmer, future_days[:1], payment_method="cash").json()
    assert client.get(f"{API}/bookings/{booking['id']}/payment-intent").status_code == 404


# --------------------------------------------------------------------
# Group bookings
# --------------------------------------------------------------------
def test_group_summary_and_booking(client, future_days):
    farmer = register_farmer(client)
    ravi = register_worker(client, future_days)
    suresh = register_worker(client, future_days, name="Suresh Patil", phone="+91 87654 32109",
                             daily_rate=750, hourly_rate=90)
    lakshmi = register_worker(client, future_days, name="Lakshmi Devi", phone="+91 76543 21098",
                              daily_rate=500, hourly_rate=65)
    ids = [ravi["id"], suresh["id"], lakshmi["id"]]

    summary = client.post(f"{API}/group-bookings/summary", json={"worker_ids": ids + [ravi["id"]]}).json()
    assert summary["worker_count"] == 3
    assert summary["total_cost_per_day"] == 1850

    r = client.post(f"{API}/group-bookings", json={
        "farmer_id": farmer["id"],
        "worker_ids": ids,
        "work_type": "Harvesting",
        "start_date": future_days[0].isoformat(),
        "end_date": future_days[1].isoformat(),
        "farmer_location": "Mandya, Karnataka",
        "special_instructions": "Bring sickles",
    })
    assert r.status_code == 201, r.text
    body = r.json()
    assert len(body["bookings"]) == 3
    assert body["total_amount"] == 3700
    assert {b["group_id"] for b in body["bookings"]} == {body["group_id"]}

    listed = client.get(f"{API}/bookings", params={"group_id": body["group_id"]}).json()
    assert listed["count"] == 3

    farmer_view = client.get(f"{API}/farmers/{farmer['id']}").json()
    assert len(farmer_view["active_bookings"]) == 3


# --------------------------------------------------------------------
# Hour-of-day times
# --------------------------------------------------------------------
def test_integer_hours_are_accepted(client, future_days):
    worker = register_worker(client, future_days)
    farmer = register_farmer(client)

    r = client.post(f"{API}/quotes", json={
        "worker_id": worker["id"], "date_count": 2, "billing_mode": "hourly",
        "start_time": 8, "end_time": 16,
    })
    assert r.status_code == 200, r.text
    assert r.json()["amount"] == 1200

    r = request_booking(client, worker, farmer, future_days[:2], billing_mode="hourly",
                        start_time=8, end_time=16)
    assert r.status_code == 201, r.text
    booking = r.json()
    assert (booking["start_hour"], booking["end_hour"]) == (8, 16)
    assert booking["total_amount"] == 1200


def test_helpful_votes_come_from_the_store(client, future_days):
    worker = register_worker(client, future_days)
    farmer = register_farmer(client)
    booking = request_booking(client, worker, farmer, future_days[:1]).json()
    move(client, booking["id"], "accept", "worker")
    move(client, booking["id"], "complete", "worker")
    review = client.post(f"{API}/bookings/{booking['id']}/review",
                         json={"rating": 4, "comment": "Good and careful weeding"}).json()

    for expected in (1, 2, 3):
        r = client.post(f"{API}/reviews/{review['id']}/helpful")
        assert r.json()["helpful_count"] == expected
