"""
Тесты дерева разметки на BeautifulSoup.
"""

from fragtpl.markup import MarkupTree, SoupMarkupTree


def test_implements_protocol():
    assert isinstance(SoupMarkupTree(), MarkupTree)


def test_parse_wraps_fragment():
    tree = SoupMarkupTree()

    root = tree.parse("<b>1</b>text<i>2</i>")

    assert root.name == "div"
    assert tree.inner(root) == "<b>1</b>text<i>2</i>"
    assert tree.serialize(root) == "<div><b>1</b>text<i>2</i></div>"


def test_find():
    tree = SoupMarkupTree()
    root = tree.parse('<ul id="l"><li class="a">1</li><li class="a">2</li></ul>')

    assert tree.find(root, "li.a").get_text() == "1"
    assert tree.find(root, "#missing") is None


def test_replace_uses_first_element():
    tree = SoupMarkupTree()
    root = tree.parse('<p id="x">old</p><p>keep</p>')
    node = tree.find(root, "#x")

    new = tree.replace(node, 'lead <p id="x">new</p><p>extra</p>')

    assert new is tree.find(root, "#x")
    assert tree.inner(root) == '<p id="x">new</p><p>keep</p>'


def test_replace_without_elements_removes_node():
    tree = SoupMarkupTree()
    root = tree.parse('<p id="x">old</p><p>keep</p>')

    assert tree.replace(tree.find(root, "#x"), "just text") is None
    assert tree.inner(root) == "<p>keep</p>"


def test_custom_container_tag():
    tree = SoupMarkupTree(container_tag="section")

    assert tree.parse("x").name == "section"
