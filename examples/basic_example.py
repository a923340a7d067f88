from dotenv import load_dotenv

from parabatch import BatchProfiler, ParallelBatchProcessor, ProcessingFailure
from parabatch.utils import setup_logging


def normalize_amount(raw: str) -> float:
    """Parse an amount such as "1,250.00" or "(300)" into a float."""
    text = raw.strip().replace(",", "")
    if text.startswith("(") and text.endswith(")"):
        return -float(text[1:-1])
    return float(text)


def main() -> None:
    # Load PARABATCH_* settings from .env if present
    load_dotenv()
    setup_logging("INFO")

    amounts = [f"{i * 3:,}.50" if i % 7 else f"({i})" for i in range(1, 50_001)]
    processor = ParallelBatchProcessor(parallelism=4, chunk_size=2_000)

    print("▶ Normalizing amounts...")
    with BatchProfiler() as profiler:
        values = processor.process(amounts, normalize_amount, profiler=profiler)

    print(f"Processed {len(values)} amounts, total = {sum(values):,.2f}")
    print(profiler.last_metrics)

    print("\n▶ Processing a batch with a malformed amount...")
    try:
        processor.process(amounts[:10] + ["n/a"], normalize_amount)
    except ProcessingFailure as exc:
        print(f"Batch aborted: {exc}")


if __name__ == "__main__":
    main()
