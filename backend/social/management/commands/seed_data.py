"""
Management command to seed the database with sample data.

Usage: python manage.py seed_data

Everything goes through the service layer, so the seeded feed also carries
the follow, like, comment and fan-out notifications a real one would.
"""

import random
from django.core.management.base import BaseCommand

from social.accounts import pin_film, register_user, toggle_follow
from social.exceptions import DuplicateEntry, WatchscapeError
from social.models import MovieStatus, Notification, Post, UserProfile
from social.services import add_comment, create_text_post, record_movie_activity, toggle_like

MOVIES = [
    {'tmdbId': '603', 'title': 'The Matrix', 'posterPath': '/f89U3ADr1oiB1s9GkdPOEpXUk5H.jpg', 'releaseDate': '1999-03-30'},
    {'tmdbId': '27205', 'title': 'Inception', 'posterPath': '/oYuLEt3zVCKq57qu2F8dT7NIa6f.jpg', 'releaseDate': '2010-07-15'},
    {'tmdbId': '157336', 'title': 'Interstellar', 'posterPath': '/gEU2QniE6E77NI6lCU6MxlNBvIx.jpg', 'releaseDate': '2014-11-05'},
    {'tmdbId': '680', 'title': 'Pulp Fiction', 'posterPath': '/d5iIlFn5s0ImszYzBPb8JPIfbXD.jpg', 'releaseDate': '1994-09-10'},
    {'tmdbId': '13', 'title': 'Forrest Gump', 'posterPath': '/arw2vcBveWOVZr6pxd9XTd1TdQa.jpg', 'releaseDate': '1994-06-23'},
    {'tmdbId': '496243', 'title': 'Parasite', 'posterPath': '/7IiTTgloJzvGI1TAYymCfbfl3vT.jpg', 'releaseDate': '2019-05-30'},
    {'tmdbId': '129', 'title': 'Spirited Away', 'posterPath': '/39wmItIWsg5sZMyRUHLkWBcuVCM.jpg', 'releaseDate': '2001-07-20'},
    {'tmdbId': '550', 'title': 'Fight Club', 'posterPath': '/pB8BM7pdSp6B6Ih7QZ4DrQ3PmJK.jpg', 'releaseDate': '1999-10-15'},
]

COUNTRIES = ['US', 'UK', 'DE', 'FR', 'JP', 'BR', 'IN', 'KR']


class Command(BaseCommand):
    help = 'Seed the database with sample users, lists, posts and notifications'

    def add_arguments(self, parser):
        parser.add_argument(
            '--users',
            type=int,
            default=8,
            help='Number of users to create'
        )
        parser.add_argument(
            '--posts',
            type=int,
            default=20,
            help='Number of text posts to create'
        )
        parser.add_argument(
            '--comments',
            type=int,
            default=40,
            help='Number of comments to create'
        )
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before seeding'
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            Notification.objects.all().delete()
            Post.objects.all().delete()
            UserProfile.objects.all().delete()

        self.stdout.write('Creating users...')
        users = self._create_users(options['users'])

        self.stdout.write('Creating follows...')
        follows = self._create_follows(users)

        self.stdout.write('Filling watchlists and pinning favourites...')
        entries = self._create_collections(users)

        self.stdout.write('Creating posts...')
        posts = self._create_posts(users, options['posts'])

        self.stdout.write('Creating comments and likes...')
        comments = self._create_comments(users, posts, options['comments'])
        self._create_likes(users, posts)

        self.stdout.write(self.style.SUCCESS(
            f'Successfully created:\n'
            f'  - {len(users)} users\n'
            f'  - {follows} follows\n'
            f'  - {entries} list entries\n'
            f'  - {len(posts)} posts\n'
            f'  - {comments} comments\n'
            f'  - {Notification.objects.count()} notifications'
        ))

    def _create_users(self, count):
        users = []
        for i in range(count):
            uid = f'seed-user-{i+1}'
            try:
                users.append(register_user(
                    uid,
                    email=f'user{i+1}@example.com',
                    name=f'User {i+1}',
                    country=random.choice(COUNTRIES),
                    age=random.randint(18, 70),
                ))
            except DuplicateEntry:
                users.append(UserProfile.objects.get(uid=uid))
        return users

    def _create_follows(self, users):
        created = 0
        for user in users:
            others = [u for u in users if u.uid != user.uid]
            for target in random.sample(others, k=min(3, len(others))):
                if toggle_follow(target.uid, user.uid):
                    created += 1
        return created

    def _create_collections(self, users):
        created = 0
        for user in users:
            for movie in random.sample(MOVIES, k=4):
                status = random.choice(MovieStatus.values)
                try:
                    record_movie_activity(user.uid, movie, status)
                    created += 1
                except DuplicateEntry:
                    pass
            for movie in random.sample(MOVIES, k=3):
                try:
                    pin_film(user.uid, movie)
                except WatchscapeError:
                    pass
        return created

    def _create_posts(self, users, count):
        posts = []
        texts = [
            "Rewatched this last night and it still holds up.",
            "Can someone explain the ending to me?",
            "Underrated. Nobody talks about the soundtrack.",
            "Movie night suggestions?",
            "Hot take: the sequel is better.",
            "Just finished my watchlist for the month!",
        ]

        for i in range(count):
            movie = random.choice(MOVIES) if random.random() < 0.6 else None
            posts.append(create_text_post(
                random.choice(users).uid,
                f"{random.choice(texts)} #{i+1}",
                movie,
            ))
        return posts

    def _create_comments(self, users, posts, count):
        comment_texts = [
            "Totally agree.",
            "Not for me, sorry.",
            "Adding this to my watchlist!",
            "The cinematography though.",
            "Seen it three times.",
        ]
        if not posts:
            return 0

        for _ in range(count):
            add_comment(
                random.choice(posts).id,
                random.choice(users).uid,
                random.choice(comment_texts),
            )
        return count

    def _create_likes(self, users, posts):
        for post in posts:
            for user in random.sample(users, k=random.randint(0, len(users))):
                toggle_like(post.id, user.uid)
