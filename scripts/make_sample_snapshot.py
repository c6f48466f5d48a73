#!/usr/bin/env python
from __future__ import annotations

import argparse
import csv
from datetime import datetime, timedelta
from pathlib import Path

WORKERS = ["Juan Dela Cruz", "Maria Santos", "Pedro Reyes", "Ana Bautista"]
PITAKS = [("North Terrace", 120), ("Riverside", 80), ("Hillside", 60)]


def _write(path: Path, header: list[str], rows: list[list[object]]) -> None:
    with path.open("w", newline="", encoding="utf-8") as fp:
        writer = csv.writer(fp)
        writer.writerow(header)
        writer.writerows(rows)


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a sample FarmOps CSV snapshot")
    parser.add_argument("--output", required=True, help="Output directory")
    parser.add_argument("--session", type=int, default=1, help="Session id stamped on every record")
    parser.add_argument("--days", type=int, default=45, help="Days of assignment history")
    args = parser.parse_args()

    output = Path(args.output)
    output.mkdir(parents=True, exist_ok=True)
    today = datetime.now().replace(hour=8, minute=0, second=0, microsecond=0)
    session = args.session

    _write(
        output / "workers.csv",
        ["id", "name", "status"],
        [[index + 1, name, "active"] for index, name in enumerate(WORKERS)],
    )
    _write(output / "bukids.csv", ["id", "name", "location", "sessionId"], [[1, "Bukid Uno", "Barangay 1", session]])
    _write(
        output / "pitaks.csv",
        ["id", "location", "status", "totalLuwang", "bukidId"],
        [[index + 1, location, "active", capacity, 1] for index, (location, capacity) in enumerate(PITAKS)],
    )

    assignments: list[list[object]] = []
    payments: list[list[object]] = []
    for day in range(args.days):
        moment = today - timedelta(days=day)
        for worker_index in range(len(WORKERS)):
            record_id = len(assignments) + 1
            pitak_id = (day + worker_index) % len(PITAKS) + 1
            status = "active" if day < 2 else ("cancelled" if record_id % 11 == 0 else "completed")
            luwang = 4 + (record_id % 5)
            assignments.append(
                [record_id, worker_index + 1, pitak_id, session, luwang, status, moment.isoformat()]
            )
            if status == "completed":
                gross = luwang * 230
                deduction = 100 if worker_index == 2 else 0
                payments.append(
                    [
                        len(payments) + 1,
                        worker_index + 1,
                        pitak_id,
                        session,
                        gross,
                        gross - deduction,
                        deduction,
                        "completed",
                        (moment + timedelta(hours=9)).isoformat(),
                        "cash" if worker_index % 2 else "gcash",
                    ]
                )
    _write(
        output / "assignments.csv",
        ["id", "workerId", "pitakId", "sessionId", "luwangCount", "status", "assignmentDate"],
        assignments,
    )
    _write(
        output / "payments.csv",
        [
            "id",
            "workerId",
            "pitakId",
            "sessionId",
            "grossPay",
            "netPay",
            "totalDebtDeduction",
            "status",
            "paymentDate",
            "paymentMethod",
        ],
        payments,
    )
    # (worker, amount, paid, age in days, days until due, status)
    debts = [
        (3, 5000, 1500, 50, -5, "partially_paid"),
        (1, 2000, 0, 10, 20, "pending"),
        (4, 12000, 1000, 95, 3, "partially_paid"),
    ]
    _write(
        output / "debts.csv",
        [
            "id",
            "workerId",
            "sessionId",
            "originalAmount",
            "amount",
            "balance",
            "totalPaid",
            "dateIncurred",
            "dueDate",
            "status",
        ],
        [
            [
                index + 1,
                worker_id,
                session,
                amount,
                amount,
                amount - paid,
                paid,
                (today - timedelta(days=age)).isoformat(),
                (today + timedelta(days=due_in)).isoformat(),
                status,
            ]
            for index, (worker_id, amount, paid, age, due_in, status) in enumerate(debts)
        ],
    )

    print(f"Sample snapshot written to: {output}")


if __name__ == "__main__":
    main()
