"""Example: walk a project through the first workflow steps against an in-memory store."""
import json
import logging
import tempfile

from artiflow.artifacts.graph import ArtifactGraphBuilder
from artiflow.artifacts.store import InMemoryArtifactStore
from artiflow.orchestrator import WorkflowOrchestrator
from artiflow.store.state_store import WorkflowStateStore

# kind the artifact store files each artifact type under
KIND_FOR_TYPE = {
    "requirement": "requirements",
    "hld": "hld",
    "lld": "lld",
    "flow_diagram": "er_diagrams",
    "wireframe_files": "wireframes",
    "tasks": "tasks",
    "tests": "tests",
}


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    artifacts = InMemoryArtifactStore(envelope=True)
    with tempfile.TemporaryDirectory() as data_root:
        orchestrator = WorkflowOrchestrator(
            state_store=WorkflowStateStore(data_root),
            graph_builder=ArtifactGraphBuilder(artifacts),
        )

        for step in range(4):
            instruction = orchestrator.get_next_instruction("demo", "Build a todo app")
            print(f"--- step {step + 1}")
            print(json.dumps(instruction.to_dict(), indent=2))
            if instruction.action.value != "GENERATE":
                break

            # pretend the agent generated and pushed the artifact
            record = artifacts.add("demo", KIND_FOR_TYPE[instruction.artifact_type], {
                "id": f"a-{step + 1}",
                "type": instruction.artifact_type,
                "specName": instruction.spec_name,
                "name": instruction.artifact_name,
            })
            progress = orchestrator.record_progress(
                "demo",
                instruction.artifact_type,
                instruction.spec_name,
                instruction.artifact_name,
                artifact_id=record["id"],
                pending_instruction_id=instruction.pending_instruction_id,
            )
            print("Progress:", progress.to_dict())


if __name__ == "__main__":
    main()
