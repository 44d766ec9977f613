"""HTML for the plan overview page - single page, no build step."""

INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Engagement Plan Monitor</title>
<style>
:root {
	--bg: #f8fafc;
	--bg-card: #ffffff;
	--border: #e2e8f0;
	--text: #0f172a;
	--text-dim: #64748b;
	--accent: #0f172a;
	--warn: #b45309;
}
* { margin: 0; padding: 0; box-sizing: border-box; }
body {
	background: var(--bg);
	color: var(--text);
	font-family: "Noto Sans", ui-sans-serif, system-ui, -apple-system, "Segoe UI", sans-serif;
	line-height: 1.5;
}
.header {
	padding: 16px 24px;
	border-bottom: 1px solid var(--border);
	background: var(--bg-card);
}
.header h1 { font-size: 18px; font-weight: 600; }
.container { max-width: 1100px; margin: 0 auto; padding: 24px; }
.plan {
	background: var(--bg-card);
	border: 1px solid var(--border);
	border-radius: 16px;
	padding: 16px 20px;
	margin-bottom: 16px;
}
.plan h2 { font-size: 16px; }
.dates, .meta { color: var(--text-dim); font-size: 13px; }
.bar { height: 8px; border-radius: 999px; background: #f1f5f9; overflow: hidden; margin: 4px 0 10px; }
.bar div { height: 100%; background: var(--accent); }
.steps { display: flex; gap: 8px; overflow-x: auto; margin-top: 8px; }
.step {
	min-width: 180px;
	border: 1px solid var(--border);
	border-radius: 12px;
	padding: 8px 10px;
	font-size: 13px;
}
.step .role { font-size: 11px; color: var(--text-dim); text-transform: uppercase; }
.flags { margin-top: 8px; color: var(--warn); font-size: 12px; padding-left: 18px; }
.empty { color: var(--text-dim); text-align: center; padding: 48px; }
</style>
</head>
<body>
<div class="header"><h1>Engagement Plan Monitor</h1></div>
<div class="container" id="plans"><div class="empty">Loading plans...</div></div>
<script>
const MAX_FLAGS = 5;

function esc(text) {
	const div = document.createElement("div");
	div.textContent = text == null ? "" : String(text);
	return div.innerHTML;
}

function bar(label, pct) {
	return `<div class="meta">${label}: ${pct}%</div><div class="bar"><div style="width:${pct}%"></div></div>`;
}

function renderPlan(plan, stats) {
	const steps = plan.steps.map(s => `
		<div class="step">
			<div class="role">${esc(s.type)} &middot; ${esc(s.status)}</div>
			<div><strong>${esc(s.actionTitle || "(Untitled step)")}</strong></div>
			<div class="meta">${esc(s.date)} &middot; ${s.progress}% &middot; p=${s.successProbability}%</div>
		</div>`).join("");
	const flags = stats.flags.slice(0, MAX_FLAGS).map(f => `<li>${esc(f)}</li>`).join("");
	const pending = stats.remainingPlanned ? `${stats.remainingPlanned} planned step(s)` : "No pending steps";
	return `
		<div class="plan">
			<h2>${esc(plan.title)}</h2>
			<div class="dates">${esc(plan.startDate)} &rarr; ${esc(plan.endDate)}</div>
			${bar("Current progress", stats.currentProgress)}
			${bar("Success probability (" + pending + ")", stats.displayedProbability)}
			<div class="steps">${steps}</div>
			${flags ? `<ul class="flags">${flags}</ul>` : ""}
		</div>`;
}

async function load() {
	const root = document.getElementById("plans");
	try {
		const plans = await (await fetch("/api/plans")).json();
		if (!plans.length) {
			root.innerHTML = '<div class="empty">No plans yet.</div>';
			return;
		}
		const stats = await Promise.all(
			plans.map(p => fetch(`/api/plans/${encodeURIComponent(p.id)}/stats`).then(r => r.json()))
		);
		root.innerHTML = plans.map((p, i) => renderPlan(p, stats[i])).join("");
	} catch (e) {
		root.innerHTML = '<div class="empty">Failed to load plans.</div>';
	}
}

load();
</script>
</body>
</html>
"""
