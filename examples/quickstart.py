#!/usr/bin/env python3
"""
Notekeeper Quickstart — the whole session and moderation lifecycle in one script.

signup user → notes CRUD → search → signup admin → admin writes for user
→ ban → create refused → unban → logout.

Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: http://localhost:4000
"""

import sys
import uuid

import httpx

BASE = "http://localhost:4000"
PASSWORD = "demo-password-123"


def signup(name: str, role: str = "user") -> tuple[httpx.Client, dict]:
    """Register on a fresh client; the session cookie lands in its cookie jar."""
    run_id = uuid.uuid4().hex[:8]
    client = httpx.Client(base_url=BASE, timeout=10)
    resp = client.post("/auth/signup", json={
        "name": name,
        "email": f"{name.lower()}-{run_id}@example.com",
        "password": PASSWORD,
        "role": role,
    })
    assert resp.status_code == 201, f"Signup failed: {resp.text}"
    return client, resp.json()["user"]


def main():
    # ── Health check ──────────────────────────────────────────────
    print("Checking backend health...")
    try:
        resp = httpx.get(f"{BASE}/health", timeout=5)
    except httpx.ConnectError:
        print(f"Backend not reachable at {BASE}")
        print("Start it with:  notekeeper serve")
        sys.exit(1)
    health = resp.json()
    print(f"  Status:   {health['status']}")
    print(f"  Database: {health['database']}")
    print(f"  Redis:    {health['redis']}")

    # ── User session ──────────────────────────────────────────────
    print("\n1. Signing up a user...")
    ada, ada_user = signup("Ada")
    print(f"   User: {ada_user['name']} <{ada_user['email']}> ({ada_user['id'][:8]}...)")

    resp = ada.get("/auth/me")
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   Session cookie works: {resp.json()['user']['email']}")

    # ── Notes CRUD ────────────────────────────────────────────────
    print("\n2. Writing notes...")
    for content in ("Buy milk", "Call the dentist", "Milk the cows"):
        resp = ada.post("/notes", json={"content": content})
        assert resp.status_code == 201, f"Failed: {resp.text}"
    note = resp.json()["note"]
    print(f"   Last note: {note['content']!r} ({note['id'][:8]}...)")

    resp = ada.put(f"/notes/{note['id']}", json={"content": "Milk the goats"})
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   Edited:    {resp.json()['note']['content']!r}")

    # ── Search ────────────────────────────────────────────────────
    print("\n3. Searching for 'milk' (oldest first)...")
    resp = ada.get("/notes", params={"q": "milk", "order": "asc", "limit": 10})
    page = resp.json()
    for n in page["notes"]:
        print(f"   - {n['content']}")
    print(f"   {page['total']} match(es)")

    # ── Admin ─────────────────────────────────────────────────────
    print("\n4. Signing up an admin...")
    root, _ = signup("Root", role="admin")

    resp = root.post("/notes", json={"content": "Welcome aboard!", "userId": ada_user["id"]})
    assert resp.status_code == 201, f"Failed: {resp.text}"
    print("   Admin left a note in Ada's account")

    resp = root.get("/admin/users", params={"q": ada_user["email"]})
    print(f"   Directory lookup: {resp.json()['total']} account(s)")

    # ── Moderation ────────────────────────────────────────────────
    print("\n5. Banning Ada...")
    resp = root.post(f"/admin/users/{ada_user['id']}/ban")
    print(f"   {resp.json()['message']}")

    resp = ada.post("/notes", json={"content": "Am I still here?"})
    print(f"   Ada creates a note → {resp.status_code}: {resp.json()['message']}")

    resp = ada.get("/notes")
    print(f"   Ada can still read her {resp.json()['total']} notes")

    resp = root.post(f"/admin/users/{ada_user['id']}/unban")
    print(f"   {resp.json()['message']}")

    # ── Logout ────────────────────────────────────────────────────
    print("\n6. Logging out...")
    ada.post("/auth/logout")
    resp = ada.get("/auth/me")
    print(f"   /auth/me after logout → {resp.status_code}")

    print("\n✓ Quickstart complete!")


if __name__ == "__main__":
    main()
