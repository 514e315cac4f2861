"""Operations dashboard - Gradio UI

Polls the metrics aggregator on a timer and renders a health banner,
KPIs, threshold alerts, a response-time chart and recent requests.
Mounted under /dashboard by the API factory.
"""
from typing import List

import gradio as gr
import pandas as pd

from devops_stack.config.settings import Settings
from devops_stack.core import system
from devops_stack.core.metrics import HealthSummary, MetricsAggregator, MetricsSnapshot

CHART_POINTS = 100
RECENT_HEADERS = ["Time", "Method", "Path", "Status", "ms", "Client"]


def format_uptime(seconds: float) -> str:
    seconds = int(seconds)
    days, rest = divmod(seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, secs = divmod(rest, 60)
    if days:
        return f"{days}d {hours}h {minutes}m"
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def severity(value: float, threshold: float) -> str:
    """Return danger/warning/ok the way the progress bars are coloured."""
    if value >= threshold:
        return "danger"
    if value >= threshold * 0.8:
        return "warning"
    return "ok"


def error_rate(snapshot: MetricsSnapshot) -> int:
    if snapshot.request_total == 0:
        return 0
    return round(snapshot.request_errors * 100 / snapshot.request_total)


def format_health_banner(summary: HealthSummary) -> str:
    if summary.healthy:
        return (
            f"### 🟢 Healthy\n"
            f"Success rate **{summary.success_rate}%** over "
            f"{summary.total_requests} requests"
        )
    return (
        f"### 🔴 Degraded\n"
        f"Success rate **{summary.success_rate}%**, "
        f"average response **{summary.average_response_time_ms:.0f} ms**, "
        f"{summary.errors} errors"
    )


def format_kpis(snapshot: MetricsSnapshot, summary: HealthSummary) -> str:
    if snapshot.has_samples:
        latency = (
            f"{snapshot.average_response_time_ms:.1f} ms avg · "
            f"{snapshot.min_response_time_ms:.1f} min · "
            f"{snapshot.max_response_time_ms:.1f} max"
        )
    else:
        latency = "no samples yet"
    return (
        f"| Requests | Success rate | Req/min (peak) | Latency | Uptime |\n"
        f"|---|---|---|---|---|\n"
        f"| {snapshot.request_total} | {summary.success_rate}% | "
        f"{snapshot.requests_per_minute} ({snapshot.peak_requests_per_minute}) | "
        f"{latency} | {format_uptime(system.uptime_seconds())} |"
    )


def build_alerts(
    snapshot: MetricsSnapshot,
    error_rate_threshold: float,
    response_time_threshold_ms: float,
) -> List[str]:
    alerts = []
    rate = error_rate(snapshot)
    level = severity(rate, error_rate_threshold)
    if level != "ok":
        icon = "❌" if level == "danger" else "⚠️"
        alerts.append(
            f"{icon} High error rate: {rate}% (threshold: {error_rate_threshold}%)"
        )
    if snapshot.has_samples:
        average = snapshot.average_response_time_ms
        level = severity(average, response_time_threshold_ms)
        if level != "ok":
            icon = "❌" if level == "danger" else "⚠️"
            alerts.append(
                f"{icon} Slow responses: {average:.0f} ms average "
                f"(threshold: {response_time_threshold_ms} ms)"
            )
    return alerts


def format_alerts(alerts: List[str]) -> str:
    if not alerts:
        return "_No alerts_"
    return "\n".join(f"- {alert}" for alert in alerts)


def recent_requests_rows(snapshot: MetricsSnapshot) -> List[list]:
    return [
        [
            r.timestamp.strftime("%H:%M:%S"),
            r.method,
            r.path,
            r.status_code,
            round(r.response_time_ms, 1),
            r.client,
        ]
        for r in snapshot.recent_requests
    ]


def response_time_frame(snapshot: MetricsSnapshot) -> pd.DataFrame:
    samples = snapshot.response_time_samples[-CHART_POINTS:]
    offset = len(snapshot.response_time_samples) - len(samples)
    return pd.DataFrame(
        {"request": list(range(offset + 1, offset + len(samples) + 1)), "ms": list(samples)}
    )


def build_dashboard(metrics: MetricsAggregator, settings: Settings) -> gr.Blocks:
    """Build the Blocks UI bound to one aggregator."""

    def refresh():
        snapshot = metrics.get_snapshot()
        summary = metrics.get_health_summary()
        alerts = build_alerts(
            snapshot, settings.error_rate_threshold, settings.response_time_threshold_ms
        )
        return (
            format_health_banner(summary),
            format_kpis(snapshot, summary),
            format_alerts(alerts),
            response_time_frame(snapshot),
            recent_requests_rows(snapshot),
        )

    def clear_metrics():
        metrics.reset()
        return refresh()

    with gr.Blocks(title=f"{settings.app_name} Dashboard") as demo:
        gr.Markdown(f"# 📊 {settings.app_name} · v{settings.app_version} ({settings.environment})")
        banner = gr.Markdown()
        kpis = gr.Markdown()

        with gr.Row():
            with gr.Column(scale=3):
                chart = gr.LinePlot(x="request", y="ms", title="Response time (ms)", height=280)
            with gr.Column(scale=2):
                gr.Markdown("### 🚨 Alerts")
                alerts = gr.Markdown()

        recent = gr.Dataframe(headers=RECENT_HEADERS, label="Recent requests", interactive=False)

        with gr.Row():
            refresh_btn = gr.Button("🔄 Refresh", variant="primary")
            clear_btn = gr.Button("🗑️ Clear metrics", variant="stop")

        outputs = [banner, kpis, alerts, chart, recent]
        timer = gr.Timer(settings.dashboard_refresh_seconds)
        timer.tick(fn=refresh, outputs=outputs)
        refresh_btn.click(fn=refresh, outputs=outputs)
        clear_btn.click(fn=clear_metrics, outputs=outputs)
        demo.load(fn=refresh, outputs=outputs)

    return demo
