"""satpass Quickstart: find Aqua's closest approach to a hurricane fix."""

from datetime import datetime, timezone

from satpass import Fix, parse_tle, search, select_elements

# Aqua element history around Hurricane Idalia
tle_text = """
AQUA
1 27424U 02022A   23240.51053241  .00001060  00000-0  24210-3 0  9990
2 27424  98.2806 184.3950 0001341  79.7213  32.1779 14.58012367135100
AQUA
1 27424U 02022A   23241.50073785  .00001012  00000-0  23139-3 0  9994
2 27424  98.2806 185.3694 0001341  80.7720  31.4024 14.58012977135246
""".strip()

# Idalia best-track fix, 2023-08-29 18Z
fix = Fix(
    time=datetime(2023, 8, 29, 18, tzinfo=timezone.utc),
    latitude_deg=25.2,
    longitude_deg=-84.9,
    intensity_kt=95.0,
)

elements = select_elements(parse_tle(tle_text), fix.time)
result = search(elements, fix, half_window_hours=3.0)

print(f"Element epoch: {elements.epoch}")
print(f"Closest at:    {result.time:%Y-%m-%d %H:%M:%S} ({result.offset_s / 60:+.1f} min)")
print(f"Slant range:   {result.distance_km:.0f} km")
print(f"Zenith:        {result.zenith_deg:.1f}°")
print(f"Nadir offset:  {result.ground_distance_km:.0f} km")
