"""Demo script: run one query through the visualization pipeline."""
import json
import sys

from services.llm_client import LLMClient, CredentialMissingError
from services.visualization_pipeline import VisualizationPipeline


def main():
    """Process a query from the command line and print the result."""
    query = " ".join(sys.argv[1:]) or "Explain bubble sort"

    print("Visualization Pipeline Demo")
    print("=" * 50)

    try:
        llm_client = LLMClient()
    except CredentialMissingError as e:
        print(f"⚠ {e.error.message}")
        print("  Continuing without a client: expect the fallback artifact.\n")
        llm_client = None

    pipeline = VisualizationPipeline(llm_client=llm_client)
    outcome = pipeline.run(query)

    print(f"Query: {query}")
    print(f"Outcome: {outcome.stage.value}")
    if outcome.failed_stage:
        print(f"Failed at: {outcome.failed_stage.value}")
        print(f"Reason: {outcome.reason}")

    visualization = outcome.result["visualization"]
    print(f"Type: {visualization['type']}, steps: {len(visualization['steps'])}")
    print()
    print(json.dumps(outcome.result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
