import os
import sys
import json
import requests

BASE_URL = os.environ.get("SMOKE_URL") or os.environ.get("DEV_URL", "http://127.0.0.1:5002")
API = f"{BASE_URL.rstrip('/')}/api"
SUBMIT = os.environ.get("SMOKE_SUBMIT") == "1"

def get(path: str):
    r = requests.get(f"{API}{path}", timeout=10)
    r.raise_for_status()
    return r

def post(path: str, payload: dict):
    r = requests.post(f"{API}{path}", json=payload, timeout=20)
    r.raise_for_status()
    return r

def act(session_id: str, payload: dict) -> dict:
    return post(f"/wizard/sessions/{session_id}/actions", payload).json()

def main():
    print(f"[smoke] Target: {API}")
    print("[smoke] /health:", get("/health").status_code)
    print("[smoke] /version:", get("/version").status_code)
    case_types = get("/case-types?lang=en").json()["data"]
    print("[smoke] /case-types:", [c["value"] for c in case_types])

    # K-1 with a non-citizen petitioner: confirm -> explanation -> wrap-up
    view = post("/wizard/sessions", {"language": "en"}).json()
    sid = view["session_id"]
    view = act(sid, {"type": "submit_basic_info", "full_name": "Smoke Test", "email": "smoke@example.com"})
    view = act(sid, {"type": "select_case_type", "case_type": "k1-fiance-visa"})
    view = act(sid, {"type": "answer", "key": "confirm", "value": "no"})
    view = act(sid, {"type": "next"})
    view = act(sid, {"type": "answer", "key": view["current_node_id"], "value": "Permanent resident, not a citizen"})
    view = act(sid, {"type": "next"})
    print("[smoke] wizard step:", view["step"], "ready:", view["ready_to_submit"])
    assert view["step"] == "wrap-up", json.dumps(view)[:300]

    if SUBMIT:
        r = requests.post(f"{API}/wizard/sessions/{sid}/submit", timeout=30)
        print("[smoke] submit:", r.status_code, json.dumps(r.json().get("submission"), indent=2)[:300])
    else:
        print("[smoke] delete:", requests.delete(f"{API}/wizard/sessions/{sid}", timeout=10).status_code)

if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print("[smoke] FAILED:", e)
        sys.exit(1)
