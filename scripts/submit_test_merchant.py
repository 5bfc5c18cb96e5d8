"""Submit a merchant to a running API and poll its verification job.

Usage:
    python -m scripts.submit_test_merchant [merchant_id] [base_url]
Defaults: merchant_id=M-001, base_url=http://localhost:8000.
Requires the API and a worker (or RUN_WORKER_IN_PROCESS=true).
"""

import asyncio
import sys

import httpx

TERMINAL_STATUSES = {"completed", "dead_letter"}


async def main() -> None:
    """Submit the merchant, then print job status until it is terminal."""
    merchant_id = sys.argv[1] if len(sys.argv) > 1 else "M-001"
    base_url = sys.argv[2] if len(sys.argv) > 2 else "http://localhost:8000"

    async with httpx.AsyncClient(base_url=base_url, timeout=10.0) as client:
        response = await client.post(
            "/merchant/submit",
            json={"merchantId": merchant_id, "name": "Test Merchant"},
        )
        if response.status_code != 202:
            print(f"Submit failed: {response.status_code} {response.text}", file=sys.stderr)
            sys.exit(1)
        job_id = response.json()["data"]["jobId"]
        print(f"Queued job {job_id} for merchant {merchant_id}")

        for _ in range(60):
            status_response = await client.get(f"/jobs/{job_id}")
            status_response.raise_for_status()
            job = status_response.json()
            print(f"  status={job['status']} attempts={job['attempts']}")
            if job["status"] in TERMINAL_STATUSES:
                print(f"Done. Result: {job.get('result') or job.get('lastError')}")
                return
            await asyncio.sleep(1.0)

    print("Job did not finish within 60s", file=sys.stderr)
    sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
