#!/usr/bin/env python3
"""Smoke test for a running index API server."""

import asyncio
import json
import sys

import httpx

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"


async def check_endpoints():
    """Hit every endpoint once and print a short summary."""
    async with httpx.AsyncClient(timeout=30) as client:
        print("Testing Crypto Index API...\n")

        print("1. /api/health")
        try:
            response = await client.get(f"{BASE_URL}/api/health")
            print(f"   Status: {response.status_code}")
            print(f"   Response: {json.dumps(response.json(), indent=2)}\n")
        except httpx.HTTPError as e:
            print(f"   Error: {e}\n")

        print("2. /api/analytics?period=30d")
        try:
            response = await client.get(f"{BASE_URL}/api/analytics", params={"period": "30d"})
            print(f"   Status: {response.status_code}")
            data = response.json().get("data", {})
            for name, entry in data.items():
                period = entry["periods"].get("30d")
                if period is None:
                    print(f"   - {name}: not enough data")
                    continue
                print(f"   - {name}: return {period['totalReturn']}%, "
                      f"sharpe {period['sharpeRatio']['value']}, "
                      f"max DD {period['maxDrawdown']['percentage']}%")
            print()
        except httpx.HTTPError as e:
            print(f"   Error: {e}\n")

        print("3. /api/index/N100-MCW")
        try:
            response = await client.get(f"{BASE_URL}/api/index/N100-MCW")
            print(f"   Status: {response.status_code}")
            data = response.json()
            print(f"   Value: {data.get('value')} at {data.get('timestamp')}")
            for holding in data.get("topHoldings", [])[:5]:
                print(f"   {holding['rank']:>3}. {holding['symbol']:<8} {holding['weight']:>6.2f}%")
            print()
        except httpx.HTTPError as e:
            print(f"   Error: {e}\n")

        print("4. /api/history?days=7")
        try:
            response = await client.get(f"{BASE_URL}/api/history", params={"days": 7})
            print(f"   Status: {response.status_code}")
            for entry in response.json().get("indexes", []):
                print(f"   - {entry['indexName']}: {entry['dataPoints']} points")
        except httpx.HTTPError as e:
            print(f"   Error: {e}\n")


if __name__ == "__main__":
    asyncio.run(check_endpoints())
