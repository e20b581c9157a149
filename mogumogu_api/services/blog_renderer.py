"""
Server-rendered blog pages and sitemap.

Pages are Jinja2 templates with autoescaping; article bodies are stored as
Markdown and converted with a small subset renderer (headings, lists,
tables, emphasis, code).
"""
import json
import re
from datetime import datetime
from typing import Dict, List, Optional

from jinja2 import DictLoader, Environment, select_autoescape
from markupsafe import Markup, escape

from mogumogu_api.core.config import APP_URL
from mogumogu_api.db.models.blog_post import BlogPost

CATEGORY_MAP = {
    "basic": {"label": "基本", "icon": "📖"},
    "recipe": {"label": "レシピ", "icon": "🍳"},
    "stage": {"label": "月齢別", "icon": "👶"},
    "food": {"label": "食材", "icon": "🥕"},
    "allergy": {"label": "アレルギー", "icon": "⚠️"},
    "tips": {"label": "コツ", "icon": "💡"},
    "goods": {"label": "グッズ", "icon": "🧸"},
}

DEFAULT_TITLE = "MoguMogu 離乳食ガイド"
DEFAULT_DESCRIPTION = "離乳食レシピ・月齢別ガイド"

_BOLD = re.compile(r"\*\*(.+?)\*\*")
_ITALIC = re.compile(r"\*(.+?)\*")
_CODE = re.compile(r"`(.+?)`")
_ORDERED = re.compile(r"^\d+\.\s")
_TABLE_SEPARATOR = re.compile(r"^[-:]+$")


# ============================================
# Markdown subset
# ============================================

def inline_format(text: str) -> str:
    """Escape, then apply **bold**, *italic* and `code`."""
    html = str(escape(text))
    html = _BOLD.sub(r"<strong>\1</strong>", html)
    html = _ITALIC.sub(r"<em>\1</em>", html)
    return _CODE.sub(r"<code>\1</code>", html)


def md_to_html(markdown: Optional[str]) -> str:
    if not markdown:
        return ""

    out: List[str] = []
    list_tag: Optional[str] = None
    in_table = False
    table_header = False
    body_open = False

    def close_list():
        nonlocal list_tag
        if list_tag:
            out.append(f"</{list_tag}>")
            list_tag = None

    def close_table():
        nonlocal in_table, body_open
        if in_table:
            out.append("</tbody></table>" if body_open else "</thead></table>")
            in_table = False
            body_open = False

    for line in markdown.split("\n"):
        if line.startswith("### ") or line.startswith("## "):
            close_list()
            close_table()
            level = 3 if line.startswith("### ") else 2
            out.append(f"<h{level}>{inline_format(line[level + 1:])}</h{level}>")
            continue

        if line.startswith("|"):
            cells = [c.strip() for c in line.split("|") if c.strip()]
            if cells and all(_TABLE_SEPARATOR.match(c) for c in cells):
                table_header = False
                continue
            if not in_table:
                close_list()
                out.append("<table><thead>")
                in_table = True
                table_header = True
            if not table_header and not body_open:
                out.append("</thead><tbody>")
                body_open = True
            tag = "th" if table_header else "td"
            out.append("<tr>" + "".join(f"<{tag}>{inline_format(c)}</{tag}>" for c in cells) + "</tr>")
            continue
        close_table()

        if line.startswith("- ") or _ORDERED.match(line):
            tag = "ul" if line.startswith("- ") else "ol"
            if list_tag != tag:
                close_list()
                out.append(f"<{tag}>")
                list_tag = tag
            item = line[2:] if tag == "ul" else _ORDERED.sub("", line, count=1)
            out.append(f"<li>{inline_format(item)}</li>")
            continue

        if not line.strip():
            continue

        close_list()
        out.append(f"<p>{inline_format(line)}</p>")

    close_list()
    close_table()
    return "".join(out)


# ============================================
# Templates
# ============================================

_STYLE = """
*{box-sizing:border-box;margin:0;padding:0}
body{font-family:'Zen Maru Gothic',-apple-system,BlinkMacSystemFont,'Hiragino Sans',sans-serif;background:#FFF8F0;color:#3D2C1E;line-height:1.8}
a{color:#FF6B35;text-decoration:none}
.wrap{max-width:680px;margin:0 auto;padding:0 16px}
.header{background:linear-gradient(135deg,#FF8C42,#FF6B35);padding:20px 16px;color:#fff}
.header a{color:#fff;font-size:13px;opacity:.85}
.header h1{font-size:14px;font-weight:700;margin-top:4px}
.article-content{font-size:15px;padding:24px 0 16px}
.article-content h2{font-size:19px;margin:32px 0 14px;padding-bottom:8px;border-bottom:2px solid #FF6B35;font-weight:900}
.article-content h3{font-size:16px;margin:24px 0 10px;padding-left:12px;border-left:3px solid #FF6B35;font-weight:700}
.article-content p{margin:0 0 14px}
.article-content ul,.article-content ol{padding-left:22px;margin:0 0 14px}
.article-content table{width:100%;border-collapse:collapse;margin:14px 0;font-size:13px}
.article-content th,.article-content td{padding:8px 10px;border:1px solid #FFE0C2}
.article-content th{background:#FFF0E0;font-weight:700;white-space:nowrap}
.badge{display:inline-block;font-size:11px;padding:3px 10px;border-radius:8px;font-weight:700;margin-right:6px}
.badge-cat{background:#FFF0E0;color:#E65100}
.badge-stage{background:#E8F5E9;color:#2E7D32}
.cta-box{margin:32px 0;padding:24px;background:linear-gradient(135deg,#FFF3E0,#FFE0B2);border-radius:16px;text-align:center}
.cta-btn{display:inline-block;background:linear-gradient(135deg,#FF8C42,#FF6B35);color:#fff;border-radius:30px;padding:12px 28px;font-size:14px;font-weight:700}
.footer{padding:24px 0;border-top:1px solid #FFE0C2;text-align:center;font-size:13px;margin-top:16px}
.card{background:#fff;border-radius:16px;padding:16px;margin-bottom:12px;border:1px solid #FFE0C2;display:block;color:#3D2C1E}
.card-title{font-size:15px;font-weight:700;line-height:1.4;margin-bottom:4px}
.card-desc{font-size:12px;color:#8B7355;line-height:1.5}
.card-date{font-size:11px;color:#A8977F;margin-top:6px}
.cat-bar{display:flex;gap:8px;overflow-x:auto;padding:12px 0}
.cat-btn{flex-shrink:0;padding:7px 14px;border-radius:18px;font-size:12px;font-weight:700;background:#fff;color:#8B7355}
.cat-btn.active{background:#FF6B35;color:#fff}
.empty{text-align:center;padding:60px 20px;color:#A8977F}
"""

TEMPLATES = {
    "base.html": """<!DOCTYPE html>
<html lang="ja">
<head>
<meta charset="utf-8"/>
<meta name="viewport" content="width=device-width,initial-scale=1,viewport-fit=cover"/>
<title>{{ title or default_title }}</title>
<meta name="description" content="{{ description or default_description }}"/>
<meta property="og:title" content="{{ title or default_title }}"/>
<meta property="og:description" content="{{ description or default_description }}"/>
<meta property="og:type" content="article"/>
<meta property="og:site_name" content="MoguMogu"/>
{% if canonical_url %}
<meta property="og:url" content="{{ canonical_url }}"/>
<link rel="canonical" href="{{ canonical_url }}"/>
{% endif %}
<meta name="twitter:card" content="summary"/>
{% if json_ld %}<script type="application/ld+json">{{ json_ld }}</script>{% endif %}
<style>{{ style }}</style>
</head>
<body>
{% block body %}{% endblock %}
</body>
</html>""",
    "badges.html": """{% macro badges(category, stage) -%}
{% if category in categories %}<span class="badge badge-cat">{{ categories[category].icon }} {{ categories[category].label }}</span>{% endif %}
{%- if stage %}<span class="badge badge-stage">{{ stage }}</span>{% endif %}
{%- endmacro %}""",
    "list.html": """{% extends "base.html" %}
{% from "badges.html" import badges %}
{% block body %}
<div class="header"><div class="wrap">
  <a href="{{ app_url }}">← アプリに戻る</a>
  <h1>📚 離乳食ガイド</h1>
</div></div>
<div class="wrap">
  <div class="cat-bar">
  {% for tab in tabs %}
    <a href="/blog{% if tab.id != 'all' %}?cat={{ tab.id }}{% endif %}" class="cat-btn{% if tab.id == active %} active{% endif %}">{{ tab.icon }} {{ tab.label }}</a>
  {% endfor %}
  </div>
  <div style="padding-bottom:24px">
  {% for post in posts %}
    <a href="/blog/{{ post.slug }}" class="card">
      <div style="margin-bottom:6px">{{ badges(post.category, post.baby_stage) }}</div>
      <div class="card-title">{{ post.title }}</div>
      {% if post.description %}<div class="card-desc">{{ post.description[:80] }}…</div>{% endif %}
      <div class="card-date">{{ post.created_at.strftime('%Y/%m/%d') }}</div>
    </a>
  {% else %}
    <div class="empty"><p style="font-size:48px;margin-bottom:12px">📝</p><p>記事がまだありません</p></div>
  {% endfor %}
  </div>
  <div class="cta-box">
    <h3>🍼 MoguMogu アプリで離乳食をもっとラクに</h3>
    <p>レシピ検索、離乳食動画、AI相談が全部無料！</p>
    <a href="{{ app_url }}" class="cta-btn">アプリを使ってみる →</a>
  </div>
  <div class="footer"><a href="{{ app_url }}">🍼 アプリトップ</a></div>
</div>
{% endblock %}""",
    "article.html": """{% extends "base.html" %}
{% from "badges.html" import badges %}
{% block body %}
<div class="header"><div class="wrap"><a href="/blog">← 記事一覧</a><h1>📚 離乳食ガイド</h1></div></div>
<div class="wrap">
  <div style="padding:20px 0 0">
    <div style="margin-bottom:10px">{{ badges(post.category, post.baby_stage) }}</div>
    <h1 style="font-size:22px;font-weight:900;line-height:1.4;margin:0 0 8px">{{ post.title }}</h1>
    <div style="font-size:12px;color:#A8977F">{{ post.created_at.strftime('%Y/%m/%d') }} 公開</div>
  </div>
  <div class="article-content">{{ content_html }}</div>
  <div class="cta-box">
    <h3>🍼 MoguMogu で離乳食レシピを検索</h3>
    <p>月齢に合わせたレシピ検索、AI相談、離乳食動画が無料で使えます</p>
    <a href="{{ app_url }}" class="cta-btn">アプリを使ってみる →</a>
  </div>
  {% if related %}
  <div style="margin:24px 0">
    <h3 style="font-size:16px;font-weight:700;margin-bottom:12px">📖 関連記事</h3>
    {% for item in related %}
    <a href="/blog/{{ item.slug }}" class="card">
      <div>{{ badges(item.category, item.baby_stage) }}</div>
      <div class="card-title">{{ item.title }}</div>
    </a>
    {% endfor %}
  </div>
  {% endif %}
  <div class="footer"><a href="/blog">📚 記事一覧</a> | <a href="{{ app_url }}">🍼 アプリトップ</a></div>
</div>
{% endblock %}""",
    "not_found.html": """{% extends "base.html" %}
{% block body %}
<div class="header"><div class="wrap"><a href="/blog">← 記事一覧</a><h1>📚 離乳食ガイド</h1></div></div>
<div class="wrap"><div class="empty">
  <p style="font-size:48px;margin-bottom:12px">📄</p>
  <p style="font-size:16px;font-weight:700;margin-bottom:8px">記事が見つかりません</p>
  <p><a href="/blog">記事一覧に戻る →</a></p>
</div></div>
{% endblock %}""",
    "sitemap.xml": """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
{% for page in static_pages %}
  <url>
    <loc>{{ base }}{{ page.url }}</loc>
    <changefreq>{{ page.freq }}</changefreq>
    <priority>{{ page.priority }}</priority>
  </url>
{% endfor %}
{% for post in posts %}
  <url>
    <loc>{{ base }}/blog/{{ post.slug }}</loc>
    <lastmod>{{ (post.updated_at or post.created_at).strftime('%Y-%m-%d') }}</lastmod>
    <changefreq>monthly</changefreq>
    <priority>0.7</priority>
  </url>
{% endfor %}
</urlset>""",
}

STATIC_PAGES = [
    {"url": "/", "priority": "1.0", "freq": "daily"},
    {"url": "/blog", "priority": "0.8", "freq": "weekly"},
]

env = Environment(
    loader=DictLoader(TEMPLATES),
    autoescape=select_autoescape(enabled_extensions=("html", "xml"), default_for_string=True),
    trim_blocks=True,
    lstrip_blocks=True,
)
env.globals.update(
    app_url=APP_URL,
    categories=CATEGORY_MAP,
    default_title=DEFAULT_TITLE,
    default_description=DEFAULT_DESCRIPTION,
    style=Markup(_STYLE),
)


def _json_ld(data: Dict) -> Markup:
    # "</" would end the script element early
    return Markup(json.dumps(data, ensure_ascii=False).replace("</", "<\\/"))


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() + "Z" if value else None


def render_blog_list(posts: List[BlogPost], category: str = "all") -> str:
    tabs = [{"id": "all", "label": "すべて", "icon": "📚"}]
    tabs += [{"id": key, **value} for key, value in CATEGORY_MAP.items()]

    json_ld = _json_ld({
        "@context": "https://schema.org",
        "@type": "CollectionPage",
        "name": DEFAULT_TITLE,
        "description": "離乳食の進め方、月齢別レシピ、食材ガイド、アレルギー対策など",
        "url": f"{APP_URL}/blog",
        "isPartOf": {"@type": "WebSite", "name": "MoguMogu", "url": APP_URL},
    })

    return env.get_template("list.html").render(
        title="離乳食ガイド - 月齢別の進め方・レシピ・食材ガイド | MoguMogu",
        description="離乳食の進め方、月齢別のおすすめレシピ、食材の与え方、アレルギー対策など、初めての離乳食を分かりやすく解説。",
        canonical_url=f"{APP_URL}/blog",
        json_ld=json_ld,
        tabs=tabs,
        active=category,
        posts=posts,
    )


def render_blog_article(post: BlogPost, related: List[BlogPost]) -> str:
    canonical = f"{APP_URL}/blog/{post.slug}"
    json_ld = _json_ld({
        "@context": "https://schema.org",
        "@type": "Article",
        "headline": post.title,
        "description": post.description,
        "author": {"@type": "Organization", "name": "MoguMogu"},
        "publisher": {"@type": "Organization", "name": "MoguMogu"},
        "datePublished": _isoformat(post.created_at),
        "dateModified": _isoformat(post.updated_at or post.created_at),
        "mainEntityOfPage": canonical,
    })

    return env.get_template("article.html").render(
        title=f"{post.title} | {DEFAULT_TITLE}",
        description=post.description or (post.content or "")[:140],
        canonical_url=canonical,
        json_ld=json_ld,
        post=post,
        related=related,
        content_html=Markup(md_to_html(post.content)),
    )


def render_not_found() -> str:
    return env.get_template("not_found.html").render(title="記事が見つかりません - MoguMogu")


def render_sitemap(posts: List[BlogPost], base: str = APP_URL) -> str:
    return env.get_template("sitemap.xml").render(base=base, static_pages=STATIC_PAGES, posts=posts)
