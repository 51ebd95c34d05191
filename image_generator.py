import os

from PIL import Image, ImageDraw, ImageFont

WIDTH, HEIGHT = 800, 600
CARD_ROWS = 5

# card name -> (summary ranking, heading, gradient top, gradient bottom, accent)
RANKING_CARDS = {
    'ships': ('ships', "Top Ships", (255, 182, 193), (221, 160, 221), (100, 50, 100)),
    'tags': ('tags', "Top Tags", (135, 206, 250), (64, 224, 208), (20, 80, 100)),
    'fandoms': ('fandoms', "Top Fandoms", (255, 165, 0), (255, 127, 80), (150, 50, 30)),
    'authors': ('authors', "Top Authors", (186, 104, 200), (121, 134, 203), (60, 30, 90)),
}


def create_gradient(width, height, color1, color2):
    """Create a vertical gradient from color1 to color2"""
    base = Image.new('RGB', (width, height), color1)
    top = Image.new('RGB', (width, height), color2)
    mask = Image.new('L', (width, height))
    mask_data = []
    for y in range(height):
        mask_data.extend([int(255 * (y / height))] * width)
    mask.putdata(mask_data)
    base.paste(top, (0, 0), mask)
    return base


def get_font(size):
    """Try to get a nice font, fall back to default if unavailable"""
    font_paths = [
        '/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf',
        '/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf',
        '/System/Library/Fonts/Helvetica.ttc',
        '/Windows/Fonts/arial.ttf'
    ]

    for path in font_paths:
        if os.path.exists(path):
            try:
                return ImageFont.truetype(path, size)
            except OSError:
                continue

    return ImageFont.load_default()


def draw_text_with_outline(draw, position, text, font, fill_color, outline_color, outline_width=2):
    """Draw text with an outline for better readability"""
    x, y = position
    for adj_x in range(-outline_width, outline_width + 1):
        for adj_y in range(-outline_width, outline_width + 1):
            draw.text((x + adj_x, y + adj_y), text, font=font, fill=outline_color)
    draw.text(position, text, font=font, fill=fill_color)


def _text_width(draw, text, font):
    bbox = draw.textbbox((0, 0), text, font=font)
    return bbox[2] - bbox[0]


def create_ranking_image(heading, entries, colors, output_path):
    """Draw a ranked list of (name, count) pairs, at most five rows"""
    top_color, bottom_color, accent = colors
    img = create_gradient(WIDTH, HEIGHT, top_color, bottom_color)
    draw = ImageDraw.Draw(img)

    draw_text_with_outline(draw, (40, 40), heading, get_font(60), (255, 255, 255), accent, 3)

    y_offset = 150
    item_font = get_font(36)
    count_font = get_font(32)

    for i, (name, count) in enumerate(entries[:CARD_ROWS]):
        draw.ellipse([40, y_offset, 90, y_offset + 50], fill=(255, 255, 255), outline=accent, width=3)
        rank_text = f"#{i + 1}"
        draw.text((65 - _text_width(draw, rank_text, count_font) // 2, y_offset + 8),
                  rank_text, font=count_font, fill=accent)

        draw.text((110, y_offset + 5), name[:30], font=item_font, fill=(255, 255, 255))

        count_text = f"{count} fics"
        draw.text((WIDTH - _text_width(draw, count_text, count_font) - 40, y_offset + 8),
                  count_text, font=count_font, fill=(255, 255, 255))

        y_offset += 80

    img.save(output_path, 'PNG')
    return output_path


def create_overall_stats_image(summary, year, output_path):
    """Works, words and the longest fic of the year"""
    img = create_gradient(WIDTH, HEIGHT, (16, 185, 129), (20, 184, 166))
    draw = ImageDraw.Draw(img)

    draw_text_with_outline(draw, (40, 40), f"{year} Wrapped", get_font(60), (255, 255, 255), (10, 100, 90), 3)

    label_font = get_font(32)
    value_font = get_font(48)
    rows = [
        ("Total Fics Read", f"{summary.total_works:,}"),
        ("Total Words Read", f"{summary.total_words:,}"),
    ]
    longest = summary.extremes.get('word_count')
    if longest:
        rows.append(("Longest Fic", f"{longest.most['word_count']:,} words"))

    y_offset = 150
    for label, value in rows:
        draw.text((80, y_offset), label, font=label_font, fill=(230, 255, 250))
        draw.text((80, y_offset + 45), value, font=value_font, fill=(255, 255, 255))
        y_offset += 130

    if longest and longest.most['title']:
        title = longest.most['title']
        title_text = title[:60] + ("..." if len(title) > 60 else "")
        draw.text((80, y_offset - 30), title_text, font=get_font(24), fill=(240, 255, 252))

    img.save(output_path, 'PNG')
    return output_path


def generate_all_stat_images(summary, year, output_dir):
    """Generate every card that has data and return {card name: path}"""
    os.makedirs(output_dir, exist_ok=True)

    image_paths = {}
    for name, (ranking_name, heading, *colors) in RANKING_CARDS.items():
        ranking = summary.rankings[ranking_name]
        if ranking.top is None:
            continue
        image_paths[name] = create_ranking_image(
            heading,
            [ranking.top] + ranking.runners_up,
            colors,
            os.path.join(output_dir, f"top_{name}_{year}.png")
        )

    image_paths['overall'] = create_overall_stats_image(
        summary,
        year,
        os.path.join(output_dir, f"overall_stats_{year}.png")
    )

    return image_paths
