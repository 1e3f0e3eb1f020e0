# trackmax/formats/gpx.py
"""
GPX helpers for trackmax

This module is intentionally format-focused:
- GPX namespace handling
- reading <trkpt> elements into LocationFix objects
- writing a finished session's route back out as a GPX track

Key design principle:
  Keep orchestration (paths, tracker, stores) in the commands,
  separate from GPX parsing and serialization (here).
"""

from __future__ import annotations

import datetime as _dt
from pathlib import Path
from typing import Optional
from xml.etree import ElementTree as ET

from trackmax.errors import InvalidGpxError
from trackmax.models import LocationFix, WorkoutSession

# GPX 1.1 default namespace
GPX_NS = {"gpx": "http://www.topografix.com/GPX/1/1"}

ET.register_namespace("", GPX_NS["gpx"])


def qn(tag: str) -> str:
    """
    Build an ElementTree-qualified name for a GPX tag.

    ElementTree represents namespaced tags internally as
      "{namespace-uri}tag"
    """
    return f"{{{GPX_NS['gpx']}}}{tag}"


def _parse_gpx_time(text: str) -> Optional[_dt.datetime]:
    """
    Parse an ISO-8601 timestamp commonly found in GPX <time> nodes.

    Expected examples:
      - "2026-01-02T21:14:44Z"
      - "2026-01-02T21:14:44.123Z"
      - "2026-01-02T21:14:44+00:00"
    """
    if not text:
        return None
    s = text.strip()
    if not s:
        return None

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    try:
        dt = _dt.datetime.fromisoformat(s)
    except ValueError:
        return None

    # Naive times are taken as UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_dt.timezone.utc)

    return dt.astimezone(_dt.timezone.utc)


def _format_gpx_time(ms: int) -> str:
    """Format epoch milliseconds as GPX time (UTC with Z, millisecond precision)."""
    dt = _dt.datetime.fromtimestamp(ms // 1000, tz=_dt.timezone.utc)
    dt += _dt.timedelta(milliseconds=ms % 1000)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _indent(elem: ET.Element, level: int = 0, indent: str = "  ") -> None:
    """
    In-place pretty-printer for ElementTree output, controlling .text/.tail
    so no blank lines are doubled up.
    """
    i = "\n" + level * indent
    j = "\n" + (level - 1) * indent if level > 0 else "\n"

    children = list(elem)
    if children:
        if elem.text is None or not elem.text.strip():
            elem.text = i + indent
        for child in children:
            _indent(child, level + 1, indent=indent)
        if children[-1].tail is None or not children[-1].tail.strip():
            children[-1].tail = i
    if elem.tail is None or not elem.tail.strip():
        elem.tail = j


def read_gpx(path: Path) -> ET.ElementTree:
    """
    Read a GPX file into an ElementTree.

    Raises:
      InvalidGpxError, OSError
    """
    try:
        return ET.parse(path)
    except ET.ParseError as e:
        raise InvalidGpxError(f"{path}: {e}") from e


def write_gpx(root: ET.Element, out_path: Path, *, pretty: bool = True) -> None:
    """
    Write a GPX XML tree to disk.

    - pretty=True applies indentation for human readability
    - writes UTF-8 with XML declaration
    """
    if pretty:
        _indent(root)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    tree = ET.ElementTree(root)
    tree.write(out_path, encoding="utf-8", xml_declaration=True)


def _opt_float(text: Optional[str]) -> Optional[float]:
    if text is None or not text.strip():
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _find_speed(trkpt: ET.Element) -> Optional[float]:
    # Speed lives in vendor extensions (e.g. gpxtpx:speed), so match on local name.
    ext = trkpt.find("gpx:extensions", GPX_NS)
    if ext is None:
        return None
    for el in ext.iter():
        if el.tag.rsplit("}", 1)[-1] == "speed":
            return _opt_float(el.text)
    return None


def extract_fixes(tree: ET.ElementTree) -> list[LocationFix]:
    """Extract ordered fixes from a GPX tree; points without a time are skipped."""
    root = tree.getroot()
    fixes: list[LocationFix] = []

    for trkpt in root.findall(".//gpx:trkpt", GPX_NS):
        try:
            lat = float(trkpt.get("lat"))
            lon = float(trkpt.get("lon"))
        except (TypeError, ValueError) as e:
            raise InvalidGpxError(f"trkpt without usable lat/lon: {trkpt.attrib}") from e

        t = _parse_gpx_time(trkpt.findtext("gpx:time", default="", namespaces=GPX_NS))
        if t is None:
            continue

        fixes.append(
            LocationFix(
                latitude=lat,
                longitude=lon,
                timestamp=int(round(t.timestamp() * 1000)),
                altitude=_opt_float(trkpt.findtext("gpx:ele", namespaces=GPX_NS)),
                speed=_find_speed(trkpt),
            )
        )

    return fixes


def read_gpx_fixes(path: Path) -> list[LocationFix]:
    return extract_fixes(read_gpx(path))


def session_to_gpx(session: WorkoutSession, *, name: Optional[str] = None) -> ET.Element:
    """Build a GPX 1.1 document with one track holding the session's route."""
    root = ET.Element(qn("gpx"), {"version": "1.1", "creator": "trackmax"})

    md = ET.SubElement(root, qn("metadata"))
    ET.SubElement(md, qn("name")).text = name or f"Workout {session.id}"
    ET.SubElement(md, qn("time")).text = _format_gpx_time(session.start_time)

    trk = ET.SubElement(root, qn("trk"))
    ET.SubElement(trk, qn("name")).text = name or f"Workout {session.id}"
    seg = ET.SubElement(trk, qn("trkseg"))

    for p in session.route:
        pt = ET.SubElement(seg, qn("trkpt"), {"lat": repr(p.latitude), "lon": repr(p.longitude)})
        if p.altitude is not None:
            ET.SubElement(pt, qn("ele")).text = repr(p.altitude)
        ET.SubElement(pt, qn("time")).text = _format_gpx_time(p.timestamp)
        if p.speed is not None:
            ext = ET.SubElement(pt, qn("extensions"))
            ET.SubElement(ext, qn("speed")).text = repr(p.speed)

    return root


def write_session_gpx(session: WorkoutSession, out_path: Path, *, name: Optional[str] = None) -> None:
    write_gpx(session_to_gpx(session, name=name), out_path)
