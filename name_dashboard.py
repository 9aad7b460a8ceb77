#!/usr/bin/env python3
from flask import Flask, jsonify, render_template_string, request
import os

from name_scanner import Cache, FilterSpec, load_cache, search, serialise_cache

CACHE_PATH = os.environ.get("NAME_SCANNER_CACHE", "available-packages.json")

app = Flask(__name__)

def read_cache():
    if not os.path.exists(CACHE_PATH):
        return Cache()
    return load_cache(CACHE_PATH)

def not_populated():
    return jsonify({"error": "Available npm package names unknown. Run name-scanner -f first."}), 409

def spec_from_args(args):
    q = args.get("q", "").strip()
    return FilterSpec(
        query=q or None,
        random=args.get("random", type=int) == 1,
        limit=args.get("limit", type=int),
        exact=args.get("exact", type=int),
        min=args.get("min_len", type=int),
        max=args.get("max_len", type=int),
    )

PAGE = """
<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Available npm Package Names</title>
    <style>
      body{font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif; padding:24px}
      table{border-collapse: collapse; width: 100%}
      th, td{padding:8px; border-bottom:1px solid #ddd; text-align: left}
      .muted{color:#666}
      .grid{display:grid; grid-template-columns: repeat(4, 1fr); gap: 12px}
      .card{border:1px solid #ddd; padding:12px; border-radius:10px}
      input[type="search"], input[type="number"]{width:100%; padding:8px}
      .row{display:grid; grid-template-columns: repeat(8, 1fr); gap: 8px; margin: 10px 0}
      .btn{padding:8px 12px; border:1px solid #222; background:#fff; border-radius:8px; text-decoration:none}
      .btn:hover{background:#f5f5f5}
      .chart{height:120px; display:flex; gap:2px; align-items:flex-end; margin:8px 0}
      .bar{width:8px; background:#9aa0a6}
    </style>
  </head>
  <body>
    <h1>Available npm Package Names</h1>
    <div class="grid">
      <div class="card">
        <div class="muted">Words</div>
        <div><strong>{{ stats.words }}</strong></div>
      </div>
      <div class="card">
        <div class="muted">Registered packages</div>
        <div><strong>{{ stats.packages }}</strong></div>
      </div>
      <div class="card">
        <div class="muted">Available</div>
        <div><strong>{{ stats.available }}</strong></div>
      </div>
      <div class="card">
        <div class="muted">Taken</div>
        <div><strong>{{ stats.taken }}</strong></div>
      </div>
    </div>

    <h2>Search</h2>
    <form method="get" class="row">
      <input type="search" name="q" placeholder="Substring..." value="{{ spec.query or '' }}" />
      <input type="number" name="exact" placeholder="Exact length" value="{{ spec.exact if spec.exact is not none else '' }}" />
      <input type="number" name="min_len" placeholder="Min length" value="{{ spec.min if spec.min is not none else '' }}" />
      <input type="number" name="max_len" placeholder="Max length" value="{{ spec.max if spec.max is not none else '' }}" />
      <input type="number" name="limit" placeholder="Limit" value="{{ spec.limit if spec.limit is not none else '' }}" />
      <label><input type="checkbox" name="random" value="1" {{ 'checked' if spec.random else '' }}> Random</label>
      <button class="btn" type="submit">Filter</button>
      <a class="btn" href="/export.json">Export JSON</a>
    </form>

    <div class="card">
      <div class="muted">Length histogram (available)</div>
      <div class="chart">
        {% for h in hist %}
        <div class="bar" style="height: {{ h }}px" title="{{ loop.index }}: {{ h }}%"></div>
        {% endfor %}
      </div>
    </div>

    {% if populated %}
    <h2>Found {{ found }} available names{% if result.names|length < found %}, displaying {{ result.names|length }}{% endif %}</h2>
    <table>
      <thead><tr><th>Name</th><th>Length</th></tr></thead>
      <tbody>
      {% for name in result.names %}
        <tr>
          <td>{{ name }}</td>
          <td class="muted">{{ name|length }}</td>
        </tr>
      {% endfor %}
      </tbody>
    </table>
    {% else %}
    <p class="muted">Available npm package names unknown. Run <code>name-scanner -f</code> first.</p>
    {% endif %}
  </body>
</html>
"""

def stats_for(cache):
    return {
        "words": len(cache.words),
        "packages": len(cache.packages),
        "available": len(cache.available),
        "taken": len(cache.taken),
    }

def length_histogram(names, buckets=20):
    # percentage of available names per length 1..buckets
    counts = [0]*buckets
    for n in names:
        L = len(n)
        if 1 <= L <= buckets:
            counts[L-1] += 1
    total = sum(counts) or 1
    return [round(c * 100 / total) for c in counts]

@app.route("/")
def home():
    cache = read_cache()
    spec = spec_from_args(request.args)
    populated = cache.is_populated()
    result = search(spec, cache.available) if populated else None
    found = 0
    if result is not None and (result.limit is None or result.limit > 0):
        found = result.total
    return render_template_string(PAGE, stats=stats_for(cache), spec=spec, result=result, found=found,
                                  populated=populated, hist=length_histogram(cache.available))

@app.route("/api/stats")
def api_stats():
    return jsonify(stats_for(read_cache()))

@app.route("/api/search")
def api_search():
    cache = read_cache()
    if not cache.is_populated():
        return not_populated()
    result = search(spec_from_args(request.args), cache.available)
    return jsonify({
        "names": result.names,
        "total": result.total,
        "limit": result.limit,
        "mode": result.mode.value,
    })

@app.route("/export.json")
def export_json():
    cache = read_cache()
    if not cache.is_populated():
        return not_populated()
    return jsonify(serialise_cache(cache))

if __name__ == "__main__":
    app.run(host="127.0.0.1", port=int(os.environ.get("PORT", "8088")), debug=False)
