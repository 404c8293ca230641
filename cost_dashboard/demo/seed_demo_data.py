# cost_dashboard/demo/seed_demo_data.py

import json
import random
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Dict, List

from cost_dashboard.storage.blob import FileBlobStore

PROVIDERS = {
    "AWS": {
        "regions": ["us-east-1", "eu-west-1"],
        "services": ["EC2", "S3", "RDS"],
        "accounts": ["111111111111", "222222222222"],
    },
    "Azure": {
        "regions": ["westeurope", "eastus"],
        "services": ["VirtualMachines", "BlobStorage"],
        "accounts": ["sub-azure-01"],
    },
    "GCP": {
        "regions": ["europe-west1"],
        "services": ["ComputeEngine", "BigQuery"],
        "accounts": ["gcp-project-a", "gcp-project-b"],
    },
}

# Budget per financial domain
DOMAIN_BUDGETS = {
    "Marketing": 5000,
    "Engineering": 20000,
    "Finance": 3000,
}


def build_demo_records(
    count: int = 200,
    start: date = date(2024, 1, 1),
    days: int = 365,
    seed: int = 42
) -> List[Dict[str, Any]]:
    """Generate deterministic demo billing records."""
    if count < 0:
        raise ValueError("count cannot be negative")
    if days <= 0:
        raise ValueError("days must be > 0")

    rng = random.Random(seed)
    records = []
    for _ in range(count):
        provider = rng.choice(sorted(PROVIDERS))
        catalog = PROVIDERS[provider]
        domain = rng.choice(sorted(DOMAIN_BUDGETS))
        day = start + timedelta(days=rng.randrange(days))
        records.append({
            "date": day.isoformat(),
            "providerName": provider,
            "region": rng.choice(catalog["regions"]),
            "accountId": rng.choice(catalog["accounts"]),
            "serviceName": rng.choice(catalog["services"]),
            "domain": domain,
            "budget": DOMAIN_BUDGETS[domain],
            "consumption": round(rng.uniform(1, 500), 2),
        })
    records.sort(key=lambda r: r["date"])
    return records


def write_demo_records(path: str, count: int = 200, seed: int = 42) -> int:
    """Write demo records to a JSON file and return how many were written."""
    records = build_demo_records(count=count, seed=seed)
    FileBlobStore(path).write_text(json.dumps(records, indent=2) + "\n")
    return len(records)


if __name__ == "__main__":
    target = Path("data") / "mockData.json"
    written = write_demo_records(str(target))
    print(f"Demo usage data written: {written} records to {target}")
