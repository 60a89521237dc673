"""Example usage of the tiered cloudlet simulator."""

import sys
from pathlib import Path
from loguru import logger

from cloud_tiering import get_scenario, run_scenario
from cloud_tiering.utils.config import load_config


def main(config_path: str = "configs/customer.yaml") -> None:
    """Run one scenario from a YAML config and log its results."""
    config = load_config(Path(config_path))
    scenario = get_scenario(config.domain, config)

    report = run_scenario(scenario)
    summary = report.summary

    logger.info(f"Total cloudlets: {summary.total_submitted}")
    logger.info(f"Completed cloudlets: {summary.completed}")
    if summary.has_completions:
        logger.info(f"Average latency: {summary.average_latency:.2f} seconds")
        logger.info(f"Average cost: ${summary.average_cost:.4f}")
    else:
        logger.info("No cloudlets completed successfully.")

    for host_id, average in report.host_utilization.items():
        if average is None:
            logger.info(f"Host {host_id}: no data")
        else:
            logger.info(f"Host {host_id}: CPU {average.cpu:.1f}%, RAM {average.ram:.1f}%, "
                        f"BW {average.bw:.1f}%")
    for vm_id, average in report.vm_utilization.items():
        if average is None:
            logger.info(f"VM {vm_id}: no data")
        else:
            logger.info(f"VM {vm_id}: CPU {average.cpu:.1f}%, RAM {average.ram:.1f}%, "
                        f"BW {average.bw:.1f}%")


if __name__ == "__main__":
    main(*sys.argv[1:])
