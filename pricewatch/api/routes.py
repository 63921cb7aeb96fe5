from __future__ import annotations

import json
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse

from pricewatch.config import Settings
from pricewatch.series.stats import compute_series_stats
from pricewatch.series.store import BoundedSeriesStore

router = APIRouter()

INDEX_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <title>Real-time Price Visualization</title>
    <script src="https://cdn.jsdelivr.net/npm/chart.js"></script>
    <style>
        body { font-family: Arial, sans-serif; margin: 20px; }
        .chart-container { height: 400px; max-width: 1200px; }
        .price-display { font-size: 24px; margin-bottom: 20px; }
    </style>
</head>
<body>
    <h1>Real-time Price Visualization</h1>
    <div class="price-display" id="prices"></div>
    <div class="chart-container"><canvas id="priceChart"></canvas></div>
    <script>
        const products = __PRODUCTS__;
        const colors = ['rgb(255, 99, 132)', 'rgb(54, 162, 235)', 'rgb(75, 192, 192)', 'rgb(255, 159, 64)'];
        const prices = document.getElementById('prices');
        products.forEach(p => {
            const div = document.createElement('div');
            div.id = 'price-' + p;
            div.textContent = p + ': Loading...';
            prices.appendChild(div);
        });
        const chart = new Chart(document.getElementById('priceChart').getContext('2d'), {
            type: 'line',
            data: {
                labels: [],
                datasets: products.map((p, i) => ({
                    label: p, data: [], borderColor: colors[i % colors.length], tension: 0.1, fill: false
                }))
            },
            options: { responsive: true, maintainAspectRatio: false }
        });

        function updateChart(data) {
            chart.data.labels = [];
            products.forEach((p, i) => {
                const points = data[p] || [];
                chart.data.datasets[i].data = points.map(pt => pt.Price);
                if (i === 0) {
                    chart.data.labels = points.map(pt => new Date(pt.Timestamp).toLocaleTimeString());
                }
                if (points.length > 0) {
                    const last = points[points.length - 1].Price;
                    document.getElementById('price-' + p).textContent = p + ': $' + last.toFixed(2);
                }
            });
            chart.update();
        }

        function fetchData() {
            fetch('/data')
                .then(r => r.json())
                .then(updateChart)
                .catch(err => console.error('Error fetching data:', err));
        }

        fetchData();
        setInterval(fetchData, __POLL_MS__);
    </script>
</body>
</html>
"""


def get_store(request: Request) -> BoundedSeriesStore:
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/", response_class=HTMLResponse)
def index(settings: Settings = Depends(get_app_settings)):
    return (
        INDEX_TEMPLATE
        .replace("__PRODUCTS__", json.dumps(settings.products))
        .replace("__POLL_MS__", str(settings.poll_interval_ms))
    )


@router.get("/data")
def data(
    product: Optional[List[str]] = Query(None, description="Product id(s); defaults to configured products"),
    store: BoundedSeriesStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """
    Retained history per product, oldest first:
      {"BTC-USD": [{"Timestamp": ..., "Price": ..., "ProductID": ...}, ...], ...}
    Unknown products map to an empty list.
    """
    products = [p.upper() for p in product] if product else settings.products
    snapshots = store.snapshot_many(products)
    return {name: [o.to_wire() for o in series] for name, series in snapshots.items()}


@router.get("/latest")
def latest(
    product: str = Query(..., min_length=1, description="Product id, e.g., BTC-USD"),
    store: BoundedSeriesStore = Depends(get_store),
):
    symbol = product.upper()
    price, found = store.latest_price(symbol)
    return {"product": symbol, "price": price if found else None, "found": found}


@router.get("/stats")
def stats(
    product: str = Query(..., min_length=1, description="Product id, e.g., BTC-USD"),
    sma_period: int = Query(10, ge=1, description="Window for the simple moving average"),
    store: BoundedSeriesStore = Depends(get_store),
):
    """
    Summary stats over the retained window.
    stats is null when nothing has been recorded for the product yet.
    """
    symbol = product.upper()
    result = compute_series_stats(store.snapshot(symbol), sma_period=sma_period)
    return {"product": symbol, "stats": result.model_dump(mode="json") if result else None}


@router.post("/dev/simulate_trade")
def dev_simulate_trade(
    product: str = Query(..., min_length=1, description="Product id, e.g., BTC-USD"),
    price: float = Query(..., ge=0, allow_inf_nan=False, description="Trade price"),
    store: BoundedSeriesStore = Depends(get_store),
):
    """
    Dev-only helper:
    Records ONE observation into the store of the running API process.
    """
    obs = store.record_observation(product.upper(), price)
    return {"ok": True, "observation": obs.to_wire(), "count": len(store.snapshot(obs.instrument))}
