"""
pigmix 命令行入口

    python -m pigmix predict "#8A4B16"
    python -m pigmix predict 52.4,61.3,44.5 --optimizer Hybrid
    python -m pigmix dataset training.csv --mode random --max-items 200
    python -m pigmix samples training.csv results.csv --optimizer Nelder-Mead
    python -m pigmix tune training.csv --optimizer CMA-ES --backend nelder-mead
"""

import argparse
import json
import sys
from typing import Optional, Sequence

from pigmix.core.color_science import LabColor
from pigmix.core.exceptions import PigmixError
from pigmix.core.initial_guess import INITIAL_GUESS_GENERATORS
from pigmix.core.mixer import MixboxColorMixer
from pigmix.core.normalizer import ProportionsNormalizer
from pigmix.evaluation.dataset_io import read_training_set
from pigmix.evaluation.oracle import ColorOracle
from pigmix.evaluation.presenter import format_as_percentages, present_recipe
from pigmix.evaluation.samples import SampleSettings, SamplesGenerator, mean_error
from pigmix.evaluation.training_set import TrainingSetCreator
from pigmix.hyperparameter.search import HyperparameterSearch
from pigmix.optimizer.factory import available_optimizers
from pigmix.utils.palette_loader import load_palette


def parse_color(text: str) -> LabColor:
    """接受 hex（#RRGGBB）或 "L,a,b" """
    if "," in text:
        values = [float(v) for v in text.split(",")]
        if len(values) != 3:
            raise argparse.ArgumentTypeError(f"Expected L,a,b, got {text!r}")
        return LabColor(*values)
    try:
        return LabColor.from_hex(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def _parameters(text: Optional[str]):
    if not text:
        return None
    try:
        params = json.loads(text)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"--params must be a JSON object: {e}")
    if not isinstance(params, dict):
        raise argparse.ArgumentTypeError("--params must be a JSON object")
    return params


def cmd_predict(args) -> int:
    palette = load_palette(args.palette)
    if args.favorites:
        palette = palette.favorites()
    weights = ColorOracle().predict_mixture(
        args.color,
        palette=palette,
        optimizer_name=args.optimizer,
        error_name=args.error,
        include_sparsity_penalty=not args.no_sparsity,
        initial_guess=args.initial_guess,
        parameters=args.params,
    )
    proportions = ProportionsNormalizer().normalize(weights)
    recipe = present_recipe(proportions, palette)
    print(recipe.formatted())
    if args.verbose:
        for pigment, pct in zip(palette, format_as_percentages(proportions)):
            print(f"  {pigment.title}: {pct}")
    return 0


def cmd_dataset(args) -> int:
    palette = load_palette(args.palette)
    creator = TrainingSetCreator(MixboxColorMixer())
    if args.mode == "pairwise":
        count = creator.create_pairwise_dataset(palette, args.output)
    elif args.mode == "grid":
        count = creator.create_k_color_dataset(palette, args.k, args.step, args.output)
    else:
        count = creator.create_random_dataset(palette, args.output, k=args.k,
                                              max_items=args.max_items, seed=args.seed)
    print(f"Wrote {count} items to {args.output}")
    return 0


def cmd_samples(args) -> int:
    palette = load_palette(args.palette)
    settings = SampleSettings(
        optimizer_name=args.optimizer,
        error_name=args.error,
        include_sparsity_penalty=not args.no_sparsity,
        initial_guess_type=args.initial_guess,
        parameters=args.params or {},
        num_samples=args.num_samples,
        seed=args.seed,
    )
    outcomes = SamplesGenerator(palette).generate_from_file(args.training, settings, args.output)
    print(f"{len(outcomes)} samples, mean error {mean_error(outcomes):.4f} -> {args.output}")
    return 0


def cmd_tune(args) -> int:
    palette = load_palette(args.palette)
    search = HyperparameterSearch(
        read_training_set(args.training),
        args.optimizer,
        num_samples=args.num_samples,
        generator=SamplesGenerator(palette),
        output_dir=args.output_dir,
    )
    if args.backend == "cma-es":
        sample = search.optimize(max_evaluations=args.max_evaluations, seed=args.seed)
    else:
        sample = search.optimize_with_nelder_mead(max_evaluations=args.max_evaluations)
    print(f"{sample.optimizer_name}: mean error {sample.mean_error:.4f}")
    print(json.dumps(sample.parameters, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pigmix", description="Pigment mixture search")
    parser.add_argument("--palette", default="default", help="palette name or JSON path")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_search_options(p):
        p.add_argument("--optimizer", default="CMA-ES", choices=available_optimizers())
        p.add_argument("--error", default="DeltaE2000", choices=["DeltaE2000", "DeltaE76"])
        p.add_argument("--initial-guess", default="Uniform", choices=list(INITIAL_GUESS_GENERATORS))
        p.add_argument("--no-sparsity", action="store_true", help="disable the sparsity penalty")
        p.add_argument("--params", type=_parameters, default=None,
                       help='optimizer parameters as JSON, e.g. \'{"sigma": 0.2}\'')

    p = sub.add_parser("predict", help="predict a recipe for one colour")
    p.add_argument("color", type=parse_color, help="#RRGGBB or L,a,b")
    p.add_argument("--favorites", action="store_true", help="use favourite pigments only")
    p.add_argument("-v", "--verbose", action="store_true")
    add_search_options(p)
    p.set_defaults(func=cmd_predict)

    p = sub.add_parser("dataset", help="create a training set")
    p.add_argument("output")
    p.add_argument("--mode", choices=["pairwise", "grid", "random"], default="random")
    p.add_argument("--k", type=int, default=3)
    p.add_argument("--step", type=float, default=0.2)
    p.add_argument("--max-items", type=int, default=100)
    p.add_argument("--seed", type=int, default=None)
    p.set_defaults(func=cmd_dataset)

    p = sub.add_parser("samples", help="run the optimizer over a training set")
    p.add_argument("training")
    p.add_argument("output")
    p.add_argument("--num-samples", type=int, default=100)
    p.add_argument("--seed", type=int, default=None)
    add_search_options(p)
    p.set_defaults(func=cmd_samples)

    p = sub.add_parser("tune", help="tune an optimizer's hyperparameters")
    p.add_argument("training")
    p.add_argument("--optimizer", default="CMA-ES")
    p.add_argument("--backend", choices=["cma-es", "nelder-mead"], default="cma-es")
    p.add_argument("--num-samples", type=int, default=20)
    p.add_argument("--max-evaluations", type=int, default=300)
    p.add_argument("--output-dir", default=None)
    p.add_argument("--seed", type=int, default=None)
    p.set_defaults(func=cmd_tune)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """主函数"""
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (PigmixError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
