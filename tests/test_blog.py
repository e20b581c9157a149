"""
Tests for the server-rendered blog, sitemap and article generation.
"""
import json
from datetime import timedelta

from mogumogu_api.core.timeutil import utcnow
from mogumogu_api.db.models.blog_post import BlogPost
from mogumogu_api.services import blog_service
from mogumogu_api.services.blog_renderer import inline_format, md_to_html


def add_post(db, slug, title, category="food", published=True, content="## 見出し\n本文です", age_days=0):
    post = BlogPost(
        slug=slug,
        title=title,
        description=f"{title}の説明",
        content=content,
        category=category,
        published=published,
        created_at=utcnow() - timedelta(days=age_days),
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    return post


# ============================================
# Markdown subset
# ============================================

def test_md_to_html_blocks():
    html = md_to_html(
        "## 月齢別の量\n"
        "- おかゆ\n"
        "- 野菜\n"
        "| 月齢 | 量 |\n"
        "|---|---|\n"
        "| 5ヶ月 | 小さじ1 |\n"
        "### ポイント\n"
        "1. 少しずつ\n"
        "2. 様子を見る\n"
        "\n"
        "本文は **大切** です"
    )

    assert "<h2>月齢別の量</h2>" in html
    assert "<ul><li>おかゆ</li><li>野菜</li></ul>" in html
    assert "<table><thead><tr><th>月齢</th><th>量</th></tr></thead><tbody><tr><td>5ヶ月</td><td>小さじ1</td></tr></tbody></table>" in html
    assert "<h3>ポイント</h3>" in html
    assert "<ol><li>少しずつ</li><li>様子を見る</li></ol>" in html
    assert "<p>本文は <strong>大切</strong> です</p>" in html


def test_inline_format_escapes_html():
    assert inline_format("<script>alert(1)</script> *注意*") == "&lt;script&gt;alert(1)&lt;/script&gt; <em>注意</em>"


def test_md_to_html_empty():
    assert md_to_html("") == ""
    assert md_to_html(None) == ""


# ============================================
# Pages
# ============================================

def test_blog_index_lists_published_posts(client, db):
    add_post(db, "banana", "バナナはいつから")
    add_post(db, "early-recipes", "初期レシピ集", category="recipe")
    add_post(db, "draft", "下書き記事", published=False)

    response = client.get("/blog")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "s-maxage=1800" in response.headers["cache-control"]
    assert "バナナはいつから" in response.text
    assert "初期レシピ集" in response.text
    assert "下書き記事" not in response.text


def test_blog_index_category_filter(client, db):
    add_post(db, "banana", "バナナはいつから")
    add_post(db, "early-recipes", "初期レシピ集", category="recipe")

    response = client.get("/blog?cat=recipe")

    assert "初期レシピ集" in response.text
    assert "バナナはいつから" not in response.text


def test_blog_index_escapes_titles(client, db):
    add_post(db, "xss", "<script>alert(1)</script>")

    response = client.get("/blog")

    assert "<script>alert(1)</script>" not in response.text
    assert "&lt;script&gt;" in response.text


def test_blog_index_empty(client):
    response = client.get("/blog")
    assert response.status_code == 200
    assert "記事がまだありません" in response.text


def test_blog_article_renders_and_counts_view(client, db):
    post = add_post(db, "banana", "バナナはいつから")
    add_post(db, "tofu", "豆腐はいつから", age_days=1)
    add_post(db, "early-recipes", "初期レシピ集", category="recipe")

    response = client.get("/blog/banana")

    assert response.status_code == 200
    assert "<h2>見出し</h2>" in response.text
    assert "豆腐はいつから" in response.text
    assert "初期レシピ集" not in response.text
    assert '<link rel="canonical" href="https://app.example.com/blog/banana"/>' in response.text
    assert "s-maxage=3600" in response.headers["cache-control"]

    db.expire_all()
    assert db.query(BlogPost).filter(BlogPost.id == post.id).first().views_count == 1


def test_blog_article_missing(client, db):
    add_post(db, "draft", "下書き記事", published=False)

    for slug in ("nope", "draft"):
        response = client.get(f"/blog/{slug}")
        assert response.status_code == 404
        assert "記事が見つかりません" in response.text


def test_sitemap(client, db):
    add_post(db, "banana", "バナナはいつから")
    add_post(db, "draft", "下書き記事", published=False)

    response = client.get("/sitemap.xml")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert "<loc>https://app.example.com/</loc>" in response.text
    assert "<loc>https://app.example.com/blog</loc>" in response.text
    assert "<loc>https://app.example.com/blog/banana</loc>" in response.text
    assert "draft" not in response.text


# ============================================
# Generation
# ============================================

def test_blog_generate_publishes_next_keyword(client, db, llm):
    llm.replies = ["```json\n" + json.dumps({
        "title": "離乳食の進め方ガイド",
        "description": "はじめての離乳食",
        "content": "## はじめに\n大丈夫ですよ",
    }, ensure_ascii=False) + "\n```"]

    response = client.post("/api/blog-generate")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "slug": "how-to-start",
        "title": "離乳食の進め方ガイド",
        "remaining": len(blog_service.KEYWORDS) - 1,
    }
    assert llm.calls[0]["max_tokens"] == 4000
    post = db.query(BlogPost).filter(BlogPost.slug == "how-to-start").one()
    assert post.category == "basic"
    assert post.baby_stage is None


def test_blog_generate_raw_markdown_fallback(client, db, llm):
    add_post(db, "how-to-start", "既存記事", category="basic")
    llm.replies = ["## 食べない時は\n焦らなくて大丈夫"]

    response = client.post("/api/blog-generate")

    body = response.json()
    assert body["slug"] == "wont-eat"
    assert body["title"] == "離乳食を食べてくれない時の原因と対処法"
    post = db.query(BlogPost).filter(BlogPost.slug == "wont-eat").one()
    assert post.content == "## 食べない時は\n焦らなくて大丈夫"


def test_blog_generate_all_done(client, db, llm):
    for keyword in blog_service.KEYWORDS:
        db.add(BlogPost(slug=keyword["slug"], title=keyword["title_hint"], content="x"))
    db.commit()

    response = client.post("/api/blog-generate")

    assert response.status_code == 200
    assert response.json()["total"] == len(blog_service.KEYWORDS)
    assert llm.calls == []


def test_blog_generate_upstream_failure(client, db, llm):
    llm.replies = [""]

    response = client.post("/api/blog-generate")

    assert response.status_code == 502
    assert db.query(BlogPost).count() == 0
