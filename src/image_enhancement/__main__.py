"""
Self-test: assess and enhance one image from disk.

    python -m image_enhancement <image_path> [--profile invoice]
                                [--output out.png] [--config cfg.yaml]
"""

import argparse
import json
import sys
from pathlib import Path

from loguru import logger

from image_enhancement.image_io import load_image, save_image
from image_enhancement.pipeline import EnhancementPipeline
from image_enhancement.profiles import DEFAULT_PROFILE, get_enhancement_profile, list_profiles


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="image_enhancement",
        description="Assess and enhance a captured document image",
    )
    parser.add_argument("image_path")
    parser.add_argument("--profile", default=DEFAULT_PROFILE,
                        help=f"document type: {', '.join(list_profiles())}")
    parser.add_argument("--output", help="output path (default: <name>_enhanced.png)")
    parser.add_argument("--config", help="YAML config path")
    args = parser.parse_args(argv)

    try:
        image = load_image(args.image_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1

    pipeline = EnhancementPipeline(config_path=args.config)
    result = pipeline.run(image, get_enhancement_profile(args.profile))

    print("\n=== Image Quality Assessment ===")
    print(json.dumps(result.assessment.to_dict(), indent=2, ensure_ascii=False))

    output = args.output or str(
        Path(args.image_path).with_name(f"{Path(args.image_path).stem}_enhanced.png")
    )
    save_image(result.image, output)
    print("\n=== Enhancement ===")
    print(f"Applied: {', '.join(result.applied) or 'none'}")
    print(f"Output:  {output} ({result.image.width}x{result.image.height})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
