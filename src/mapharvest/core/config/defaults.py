"""
Default configuration files written by `mapharvest init`.
"""

from __future__ import annotations

import yaml

DEFAULT_APP_YAML = """\
# mapharvest configuration
# Values may reference environment variables: ${VAR} or ${VAR:-default}

browser:
  browser: chromium
  headless: ${MAPHARVEST_HEADLESS:-true}
  viewport_width: 1080
  viewport_height: 1024
  stealth: true
  locale: en-AU
  maps_url: https://www.google.com/maps
  navigation_timeout_ms: 30000
  action_timeout_ms: 10000

retry:
  max_attempts: 3
  delay_ms: 1000
  base_timeout_ms: 2000

scroll:
  max_attempts: 50
  ready_timeout_ms: 30000
  growth_timeout_ms: 10000
  settle_timeout_ms: 2000
  end_marker_text: reached the end of the list
  progress_every: 5

search:
  query_template: "restaurant near {name}, New South Wales, Australia"
  results_timeout_ms: 30000

batch:
  concurrency: 10
  cooldown_ms: 5000
  tmp_root: tmp
  final_output: all_restaurants.csv
  keep_tmp: false
  monitor_interval_seconds: 5

logging:
  level: INFO
  file: logs/mapharvest.log
  json_format: true
  rich_console: true

queries_file: configs/queries/illawarra.yaml
"""

ILLAWARRA_SUBURBS = [
    "Woronora Dam",
    "Woonona",
    "Wombarra",
    "Windang",
    "Unanderra",
    "Thirroul",
    "Stanwell Park",
    "Scarborough",
    "Reidtown",
    "Port Kembla",
    "Otford",
    "Mount Marshall",
    "Kembla",
    "Keiraville",
    "Helensburgh",
    "Dapto",
    "Cringila",
    "Corrimal",
    "Coniston",
    "Coledale",
    "Coalcliff",
    "Clifton",
    "Wollongong",
    "Bulli",
    "Brownsville",
    "Berkeley",
    "Bellambi",
    "Balgownie",
    "Austinmer",
    "Lake Heights",
    "Warrawong",
    "Kemblawarra",
    "Tarrawanna",
    "Fern Hill",
    "Towradgi",
    "Fairy Meadow",
    "Mount Ousley",
    "Mount Keira",
    "Gwynneville",
    "McArthur Heights",
    "Mount Drummond",
    "Figtree",
    "Mangerton",
    "Mount Saint Thomas",
    "Stanwell Tops",
    "Horsley",
    "Russell Vale",
    "Farmborough Heights",
    "Haywards Bay",
    "Kanahooka",
    "Primbee",
    "Penrose",
    "Lilyvale",
    "Avon",
    "Avondale",
    "Cordeaux Heights",
    "Darkes Forest",
    "Dombarton",
    "East Corrimal",
    "Huntley",
    "Kembla Grange",
    "Kembla Heights",
    "Koonawarra",
    "Yallah",
    "Wongawilli",
    "West Wollongong",
    "North Wollongong",
    "Mount Pleasant",
    "Cleveland",
    "Wollongong city centre",
    "Mount Kembla",
]


def render_queries_yaml(names: list[str]) -> str:
    """Render a query source file for the given place names."""
    header = "# One entry per search; each name fills {name} in search.query_template.\n"
    body = yaml.safe_dump(
        {"queries": [{"name": name} for name in names]},
        sort_keys=False,
        allow_unicode=True,
    )
    return header + body
