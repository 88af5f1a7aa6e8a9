"""
Run the consolidation pass on a detector output file.

Reads:
  - consolidation_io/detector_output.json  {"text": ..., "entities": [...]}
    (or the path given as first argument)

Writes:
  - consolidation_io/consolidation_result.json
"""
import json
import logging
import sys
from pathlib import Path

from pii_consolidation.config.settings import LOG_LEVEL, load_config_from_env

# ---------------------------------------------------------------------------
# Setup logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger("run_consolidation")

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
ROOT = Path(__file__).parent
IO_DIR = ROOT / "consolidation_io"

INPUT_FILE = Path(sys.argv[1]) if len(sys.argv) > 1 else IO_DIR / "detector_output.json"
OUTPUT_FILE = INPUT_FILE.with_name("consolidation_result.json")

# ---------------------------------------------------------------------------
# Load input
# ---------------------------------------------------------------------------
logger.info("Loading input: %s", INPUT_FILE)

with open(INPUT_FILE, encoding="utf-8") as f:
    detector_output: dict = json.load(f)

text: str = detector_output["text"]
raw_entities: list = detector_output["entities"]

logger.info("text       : %d chars", len(text))
logger.info("entities   : %d", len(raw_entities))

# ---------------------------------------------------------------------------
# Boundary validation
# ---------------------------------------------------------------------------
from pii_consolidation.postprocessing.validation import (
    validate_consolidation_output,
    validate_raw_entities,
)

validation = validate_raw_entities(raw_entities, text)
if not validation.valid:
    logger.error("Input validation failed: %s", validation.errors)
    sys.exit(1)

# ---------------------------------------------------------------------------
# Consolidation
# ---------------------------------------------------------------------------
from pii_consolidation.postprocessing.output_builder import build_consolidation_output
from pii_consolidation.postprocessing.pipeline import consolidate

config = load_config_from_env()
logger.info("config     : %s", config.model_dump(by_alias=True, exclude_none=True))

result = consolidate(validation.data, text, config)
output = build_consolidation_output(result)

output_check = validate_consolidation_output(output)
if not output_check.valid:
    logger.error("Output validation failed: %s", output_check.errors)
    sys.exit(1)

with open(OUTPUT_FILE, "w", encoding="utf-8") as f:
    json.dump(output, f, ensure_ascii=False, indent=2)

logger.info("Output saved to: %s", OUTPUT_FILE)

# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------
meta = output["metadata"]
print("\n" + "=" * 70)
print("CONSOLIDATION RESULT — SUMMARY")
print("=" * 70)
print(f"entities    : {meta['originalEntityCount']} → {len(output['entities'])}")
print(f"overlaps    : {meta['overlapsResolved']}")
print(f"addresses   : {meta['addressesConsolidated']}")
print(f"linked      : {meta['entitiesLinked']}")
print(f"duration    : {meta['durationMs']} ms")

if output["entities"]:
    print(f"\nEntities ({len(output['entities'])}):")
    for e in output["entities"]:
        logical = e.get("logicalId", "-")
        print(f"  {e['type']:16s} {logical:12s} → {e['text']}")

if validation.warnings:
    print(f"\nWarnings: {validation.warnings}")

print("=" * 70 + "\n")
