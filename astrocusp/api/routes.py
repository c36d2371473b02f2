# astrocusp/api/routes.py
"""
astrocusp API routes
- Chart (ASC/MC, house cusps, optional Sun)
- Sun position
- Timescales (JD, GMST0, LST, obliquity)
- House modes + engine defaults
- Ops: /api/health

Engine and validation errors propagate to the app-level handlers in
astrocusp.main, which map them to 400/422 JSON bodies.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import BadRequest

from astrocusp.core.chart import ChartEngine
from astrocusp.core.houses import HOUSE_MODES, PLACIDUS_FACTORS
from astrocusp.utils.metrics import MET_CHARTS
from astrocusp.utils.validators import parse_chart_payload, parse_jd_payload
from astrocusp.version import VERSION

log = logging.getLogger(__name__)
api = Blueprint("api", __name__)

ENGINE_EXT_KEY = "astrocusp.engine"


def _engine() -> ChartEngine:
    return current_app.extensions[ENGINE_EXT_KEY]


def _body_json() -> Dict[str, Any]:
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        raise BadRequest("JSON body must be an object")
    return data


# ───────────────────────── health / ops ─────────────────────────
@api.get("/api/health")
def health():
    eng = _engine()
    return jsonify({
        "ok": True,
        "status": "up",
        "version": VERSION,
        "dataset": eng.ephemeris.dataset.describe(),
    }), 200


@api.get("/api/houses/modes")
def house_modes():
    cfg = _engine().config
    return jsonify({
        "ok": True,
        "modes": list(HOUSE_MODES),
        "default": cfg.house_mode,
        "placidus": {
            "factors": {str(h): f for h, f in PLACIDUS_FACTORS.items()},
            "tolerance_rad": cfg.placidus_tolerance_rad,
            "max_iterations": cfg.placidus_max_iterations,
        },
        "polar_epsilon_deg": cfg.polar_epsilon_deg,
        "obliquity_mode": cfg.obliquity_mode,
        "projected_mc": cfg.projected_mc,
    }), 200


# ───────────────────────── timescales ─────────────────────────
@api.post("/api/timescales")
def timescales_endpoint():
    ci = parse_chart_payload(_body_json(), require_latitude=False)
    ts = _engine().timescales(ci)
    return jsonify({"ok": True, "timescales": ts.to_dict()}), 200


# ───────────────────────── sun ─────────────────────────
@api.post("/api/sun")
def sun_endpoint():
    body = _body_json()
    eng = _engine()
    if "jd" in body:
        jd = parse_jd_payload(body)
        warnings: list = []
    else:
        ts = eng.timescales(parse_chart_payload(body, require_latitude=False))
        jd, warnings = ts.jd, list(ts.warnings)
    sun = eng.sun(jd)
    return jsonify({"ok": True, "sun": sun.to_dict(), "warnings": warnings}), 200


# ───────────────────────── chart ─────────────────────────
@api.post("/api/chart")
def chart_endpoint():
    ci = parse_chart_payload(_body_json())
    result = _engine().compute(ci)
    MET_CHARTS.labels(house_mode=result.house_mode).inc()
    return jsonify({"ok": True, "chart": result.to_dict()}), 200
